"""Configuration management commands."""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.config import Configuration


def cmd_config(args, config: 'Configuration') -> int:
    """Handle config command - show or save the effective configuration."""
    import yaml
    from .. import colors
    from ...core.config import get_config_path

    if not getattr(args, 'config_cmd', None):
        print("Usage: yurt config <show|save>")
        print("\nSubcommands:")
        print("  show    Print the effective configuration")
        print("  save    Write the effective configuration (with command line overrides)")
        return 1

    if args.config_cmd in ('show', 'sh'):
        print(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=True), end='')
        return 0

    if args.config_cmd == 'save':
        path = Path(args.config) if getattr(args, 'config', None) else get_config_path()
        try:
            config.save(path)
        except OSError as e:
            print(colors.error(f"error: cannot write {path}: {e}"))
            return 1
        print(colors.success(f"Configuration saved to {path}"))
        return 0

    print(colors.error(f"Unknown config command: {args.config_cmd}"))
    return 1
