"""Tests for configuration loading"""

import logging

import pytest
import yaml

from yurt.core.config import (
    ConfigError, Configuration, get_config_dir, get_config_path, load_config,
)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        config = Configuration()
        assert config.aur_url == "https://aur.archlinux.org"
        assert config.request_split_n == 150
        assert config.sort_by == "votes"
        assert config.sort_mode == "bottomup"
        assert config.search_by == "name-desc"
        assert config.mode == "any"
        assert config.optional_keep_alive is True
        assert config.ignore == []

    def test_defaults_valid(self):
        Configuration().validate()

    def test_config_dir_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))
        assert get_config_dir() == tmp_path / 'yurt'
        assert get_config_path() == tmp_path / 'yurt' / 'config.yaml'


class TestFromDict:
    """Tests for building a configuration from parsed data."""

    def test_values(self):
        config = Configuration.from_dict({'request_split_n': 50, 'ignore': ['a', 'b']})
        assert config.request_split_n == 50
        assert config.ignore == ['a', 'b']

    def test_yay_keys(self):
        config = Configuration.from_dict({
            'aururl': 'https://aur.example.org',
            'requestsplitn': 20,
            'sortmode': 'topdown',
            'SortBy': 'popularity',
        })
        assert config.aur_url == 'https://aur.example.org'
        assert config.request_split_n == 20
        assert config.sort_mode == 'topdown'
        assert config.sort_by == 'popularity'

    def test_ignore_as_string(self):
        assert Configuration.from_dict({'ignore': 'a b'}).ignore == ['a', 'b']

    def test_int_for_float(self):
        assert Configuration.from_dict({'timeout': 5}).timeout == 5.0

    def test_unknown_key_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            Configuration.from_dict({'colour': True})
        assert 'unknown config key: colour' in caplog.text

    @pytest.mark.parametrize('data', [
        {'request_split_n': 'many'},
        {'request_split_n': True},
        {'optional_keep_alive': 'yes'},
        {'aur_url': 42},
        {'ignore': 3},
        {'timeout': 'soon'},
    ])
    def test_bad_types(self, data):
        with pytest.raises(ConfigError):
            Configuration.from_dict(data)


class TestValidate:
    """Tests for range checks."""

    @pytest.mark.parametrize('kwargs', [
        {'request_split_n': 0},
        {'max_workers': 0},
        {'timeout': 0},
        {'sort_by': 'size'},
        {'sort_mode': 'sideways'},
        {'search_mode': 'fancy'},
        {'mode': 'both'},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            Configuration(**kwargs).validate()


class TestLoadConfig:
    """Tests for reading config files."""

    def test_missing_file(self, tmp_path):
        config = load_config(tmp_path / 'nope.yaml')
        assert config == Configuration()

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text('')
        assert load_config(path) == Configuration()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("request_split_n: 10\nsort_mode: topdown\nignore:\n  - foo\n")
        config = load_config(path)
        assert config.request_split_n == 10
        assert config.sort_mode == 'topdown'
        assert config.ignore == ['foo']

    def test_json_file(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text('{"aururl": "https://aur.example.org", "requestsplitn": 30}')
        config = load_config(path)
        assert config.aur_url == 'https://aur.example.org'
        assert config.request_split_n == 30

    def test_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv('AUR_MIRROR', 'https://mirror.example.org')
        path = tmp_path / 'config.yaml'
        path.write_text("aur_url: $AUR_MIRROR\n")
        assert load_config(path).aur_url == 'https://mirror.example.org'

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("request_split_n: [1, 2\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_string_key(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("1: foo\n")
        with pytest.raises(ConfigError, match='keys must be strings'):
            load_config(path)

    def test_unreadable_path(self, tmp_path):
        # A directory exists but cannot be opened as a file
        with pytest.raises(ConfigError, match='cannot read'):
            load_config(tmp_path)

    def test_out_of_range(self, tmp_path):
        path = tmp_path / 'config.yaml'
        path.write_text("request_split_n: 0\n")
        with pytest.raises(ConfigError, match='request_split_n'):
            load_config(path)

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / 'sub' / 'config.yaml'
        config = Configuration(request_split_n=75, ignore=['x'])
        config.save(path)

        assert yaml.safe_load(path.read_text())['request_split_n'] == 75
        assert load_config(path) == config
