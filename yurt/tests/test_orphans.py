"""Tests for hanging package detection"""

import pytest

from yurt.core.pacman import InstalledPackage, InstallReason
from yurt.core.resolution import (
    SafetyState, build_provides_index, find_hanging_packages, hanging_packages,
)


def explicit(name, depends=(), optional=(), provides=()):
    return InstalledPackage(name=name, reason=InstallReason.EXPLICIT,
                            depends=tuple(depends), optional_depends=tuple(optional),
                            provides=tuple(provides))


def dep(name, depends=(), optional=(), provides=()):
    return InstalledPackage(name=name, reason=InstallReason.DEPENDENCY,
                            depends=tuple(depends), optional_depends=tuple(optional),
                            provides=tuple(provides))


class FakeLocalDatabase:
    def __init__(self, packages):
        self._packages = packages

    def packages(self):
        return self._packages


class TestProvidesIndex:
    """Tests for the capability index."""

    def test_multiple_providers(self):
        index = build_provides_index([
            dep('openssl', provides=['libssl.so']),
            dep('libressl', provides=['libssl.so']),
            dep('bash'),
        ])
        assert index == {'libssl.so': {'openssl', 'libressl'}}

    def test_own_name_not_indexed(self):
        assert build_provides_index([dep('bash')]) == {}


class TestFindHanging:
    """Tests for reachability from explicit packages."""

    def test_empty(self):
        assert find_hanging_packages([]) == set()

    def test_lone_dependency_is_hanging(self):
        assert find_hanging_packages([dep('libfoo')]) == {'libfoo'}

    def test_explicit_never_hanging(self):
        pkgs = [explicit('vim'), explicit('firefox', depends=['vim'])]
        assert find_hanging_packages(pkgs) == set()

    def test_transitive_chain(self):
        # a -> b -> c, listed in reverse so several passes are needed
        pkgs = [dep('c'), dep('b', depends=['c']), explicit('a', depends=['b'])]
        assert find_hanging_packages(pkgs) == set()

    def test_chain_from_dependency_only(self):
        pkgs = [dep('b', depends=['c']), dep('c'), explicit('a')]
        assert find_hanging_packages(pkgs) == {'b', 'c'}

    def test_dependency_via_provides(self):
        pkgs = [
            explicit('curl', depends=['libssl.so']),
            dep('openssl', provides=['libssl.so']),
        ]
        assert find_hanging_packages(pkgs) == set()

    def test_all_providers_kept(self):
        pkgs = [
            explicit('curl', depends=['sh']),
            dep('bash', provides=['sh']),
            dep('dash', provides=['sh']),
        ]
        assert find_hanging_packages(pkgs) == set()

    def test_direct_name_wins_over_provides(self):
        pkgs = [
            explicit('app', depends=['sh']),
            dep('sh'),
            dep('busybox', provides=['sh']),
        ]
        assert find_hanging_packages(pkgs) == {'busybox'}

    def test_versioned_provider_reached_through_dependencies(self):
        pkgs = [
            explicit('app', depends=['java-runtime']),
            dep('jre-openjdk', depends=['java-common'], provides=['java-runtime']),
            dep('java-common'),
        ]
        assert find_hanging_packages(pkgs) == set()

    def test_cycle_between_dependencies(self):
        pkgs = [dep('x', depends=['y']), dep('y', depends=['x'])]
        assert find_hanging_packages(pkgs) == {'x', 'y'}

    def test_cycle_reached_from_explicit(self):
        pkgs = [explicit('a', depends=['x']), dep('x', depends=['y']), dep('y', depends=['x'])]
        assert find_hanging_packages(pkgs) == set()

    def test_unknown_dependency_ignored(self):
        pkgs = [explicit('a', depends=['not-installed']), dep('b')]
        assert find_hanging_packages(pkgs) == {'b'}

    def test_optional_keeps_by_default(self):
        pkgs = [explicit('a', optional=['o']), dep('o', depends=['p']), dep('p')]
        assert find_hanging_packages(pkgs) == set()

    def test_remove_optional(self):
        pkgs = [explicit('a', optional=['o']), dep('o', depends=['p']), dep('p')]
        assert find_hanging_packages(pkgs, remove_optional=True) == {'o', 'p'}

    def test_remove_optional_still_follows_hard_deps(self):
        pkgs = [explicit('a', depends=['o'], optional=['o']), dep('o')]
        assert find_hanging_packages(pkgs, remove_optional=True) == set()

    def test_idempotent(self):
        pkgs = [explicit('a', depends=['b']), dep('b'), dep('c', depends=['d']), dep('d')]
        first = find_hanging_packages(pkgs)
        second = find_hanging_packages(pkgs)
        assert first == second == {'c', 'd'}

    def test_input_order_irrelevant(self):
        pkgs = [explicit('a', depends=['b']), dep('b', depends=['c']), dep('c'), dep('d')]
        assert find_hanging_packages(pkgs) == find_hanging_packages(list(reversed(pkgs)))

    def test_accepts_generator(self):
        pkgs = [explicit('a', depends=['b']), dep('b'), dep('c')]
        assert find_hanging_packages(p for p in pkgs) == {'c'}

    def test_safety_state_order(self):
        assert SafetyState.REMOVABLE < SafetyState.KEEP_PENDING < SafetyState.KEEP_SCANNED


class TestHangingPackages:
    """Tests for the database-level helper."""

    def test_database_order(self):
        db = FakeLocalDatabase([
            dep('zlib'), explicit('vim'), dep('aspell'), dep('libfoo'),
        ])
        assert hanging_packages(db) == ['zlib', 'aspell', 'libfoo']

    @pytest.mark.parametrize('remove_optional,expected', [
        (False, []),
        (True, ['python-pip']),
    ])
    def test_optional_switch(self, remove_optional, expected):
        db = FakeLocalDatabase([
            explicit('python', optional=['python-pip']),
            dep('python-pip'),
        ])
        assert hanging_packages(db, remove_optional=remove_optional) == expected
