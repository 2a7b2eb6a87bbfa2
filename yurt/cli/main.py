"""
Main CLI entry point for yurt

Commands with short aliases:
- yurt search / yurt s        search the AUR
- yurt info / yurt si         AUR (and repo) package details
- yurt pkgbuild / yurt gp     print PKGBUILDs
- yurt hanging / yurt orphans list packages no longer needed
- yurt autoremove / yurt ar   remove them
- yurt stats                  installed package statistics
- yurt config                 show or save settings
"""

import argparse
import logging
import sys

from .. import __version__
from ..core.config import SEARCH_BY, SORT_KEYS, ConfigError, load_config


class AliasedSubParsersAction(argparse._SubParsersAction):
    """Custom action to support command aliases in argparse."""

    def add_parser(self, name, **kwargs):
        aliases = kwargs.pop('aliases', [])
        parser = super().add_parser(name, **kwargs)

        for alias in aliases:
            self._name_parser_map[alias] = parser

        return parser


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all commands and aliases."""

    parser = argparse.ArgumentParser(
        prog='yurt',
        description='AUR helper front-end for Arch Linux',
        epilog='Use "yurt <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'yurt {__version__}'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Configuration file to use'
    )
    parser.add_argument(
        '--request-split-n',
        type=int,
        metavar='N',
        help='Maximum package names per AUR request'
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '--aur', '-a',
        dest='mode', action='store_const', const='aur',
        help='Only consider AUR packages'
    )
    mode.add_argument(
        '--repo',
        dest='mode', action='store_const', const='repo',
        help='Only consider repository packages'
    )

    # Parent parser for display options (inherited by subparsers)
    display_parent = argparse.ArgumentParser(add_help=False)
    display_parent.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    display_parent.add_argument(
        '--flat',
        action='store_true',
        help='Flat output (one item per line, parsable)'
    )
    display_parent.add_argument(
        '--show-all',
        action='store_true',
        help='Show all items without truncation'
    )

    parser.register('action', 'parsers', AliasedSubParsersAction)

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    # =========================================================================
    # search / s
    # =========================================================================
    search_parser = subparsers.add_parser(
        'search', aliases=['s'],
        help='Search the AUR'
    )
    search_parser.add_argument(
        'terms', nargs='+',
        help='Search terms (all must match)'
    )
    search_parser.add_argument(
        '--by',
        choices=SEARCH_BY,
        help='Field to search'
    )
    search_parser.add_argument(
        '--sortby',
        choices=SORT_KEYS,
        help='Sort results by this field'
    )
    sort_order = search_parser.add_mutually_exclusive_group()
    sort_order.add_argument(
        '--topdown',
        dest='sortmode', action='store_const', const='topdown',
        help='Best match first'
    )
    sort_order.add_argument(
        '--bottomup',
        dest='sortmode', action='store_const', const='bottomup',
        help='Best match last'
    )
    search_parser.add_argument(
        '--minimal', '-q',
        action='store_true',
        help='Print package names only'
    )

    # =========================================================================
    # info / si
    # =========================================================================
    info_parser = subparsers.add_parser(
        'info', aliases=['si'],
        help='Show package details'
    )
    info_parser.add_argument(
        'packages', nargs='+',
        help='Package names (optionally repo/name)'
    )
    info_parser.add_argument(
        '--extended', '-i',
        action='store_true',
        help='Show extra AUR fields'
    )

    # =========================================================================
    # pkgbuild / gp
    # =========================================================================
    pkgbuild_parser = subparsers.add_parser(
        'pkgbuild', aliases=['gp'],
        help='Print PKGBUILDs'
    )
    pkgbuild_parser.add_argument(
        'packages', nargs='+',
        help='Package names (optionally repo/name)'
    )

    # =========================================================================
    # hanging / orphans
    # =========================================================================
    hanging_parser = subparsers.add_parser(
        'hanging', aliases=['orphans'],
        help='List packages installed as deps that nothing explicit needs',
        parents=[display_parent]
    )
    hanging_parser.add_argument(
        '--optional', '-o',
        action='store_true',
        help='Do not count optional dependencies as needed'
    )

    # =========================================================================
    # autoremove / ar
    # =========================================================================
    autoremove_parser = subparsers.add_parser(
        'autoremove', aliases=['ar'],
        help='Remove hanging packages',
        parents=[display_parent]
    )
    autoremove_parser.add_argument(
        '--optional', '-o',
        action='store_true',
        help='Do not count optional dependencies as needed'
    )
    autoremove_parser.add_argument(
        '--auto', '-y',
        action='store_true',
        help='No confirmation'
    )

    # =========================================================================
    # stats
    # =========================================================================
    subparsers.add_parser(
        'stats',
        help='Installed package statistics'
    )

    # =========================================================================
    # config
    # =========================================================================
    config_parser = subparsers.add_parser(
        'config',
        help='Show or save configuration'
    )
    config_subparsers = config_parser.add_subparsers(dest='config_cmd', metavar='<subcommand>')
    config_subparsers.add_parser('show', aliases=['sh'], help='Print effective configuration')
    config_subparsers.add_parser('save', help='Write effective configuration to file')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if getattr(args, 'verbose', False):
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )

    from . import colors
    colors.init(nocolor=getattr(args, 'nocolor', False))

    from . import display
    if getattr(args, 'json', False):
        display.init(mode='json', show_all=True)
    elif getattr(args, 'flat', False):
        display.init(mode='flat', show_all=True)
    else:
        display.init(mode='columns', show_all=getattr(args, 'show_all', False))

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
        # Command line overrides
        if args.mode:
            config.mode = args.mode
        if args.request_split_n is not None:
            config.request_split_n = args.request_split_n
        config.validate()
    except ConfigError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    from .commands import (
        cmd_search, cmd_info, cmd_stats, cmd_pkgbuild,
        cmd_hanging, cmd_autoremove, cmd_config,
    )

    try:
        if args.command in ('search', 's'):
            return cmd_search(args, config)

        elif args.command in ('info', 'si'):
            return cmd_info(args, config)

        elif args.command in ('pkgbuild', 'gp'):
            return cmd_pkgbuild(args, config)

        elif args.command in ('hanging', 'orphans'):
            return cmd_hanging(args, config)

        elif args.command in ('autoremove', 'ar'):
            return cmd_autoremove(args, config)

        elif args.command == 'stats':
            return cmd_stats(args, config)

        elif args.command == 'config':
            return cmd_config(args, config)

        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
