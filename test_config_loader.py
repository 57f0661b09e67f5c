"""
Unit tests for configuration loader module.
"""


import pytest
import yaml
from pathlib import Path
from unittest.mock import patch

import form_builder.config_loader as config_loader
from form_builder.config_loader import (
    deep_merge,
    get_config_value,
    get_default_config,
    get_default_seed,
    get_seed_form,
    load_config,
    reload_config,
)


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Each test starts and ends with an empty config cache."""
    config_loader._config_cache = None
    yield
    config_loader._config_cache = None


class TestDeepMerge:
    """Test cases for deep_merge function."""

    def test_deep_merge_simple_dicts(self):
        base = {'a': 1, 'b': 2}
        update = {'b': 3, 'c': 4}

        result = deep_merge(base, update)

        assert result == {'a': 1, 'b': 3, 'c': 4}
        assert base == {'a': 1, 'b': 2}

    def test_deep_merge_nested_dicts(self):
        base = {'ui': {'page_title': 'Base', 'sidebar_title': 'Add'}}
        update = {'ui': {'page_title': 'Intake Builder'}}

        result = deep_merge(base, update)

        assert result == {'ui': {'page_title': 'Intake Builder', 'sidebar_title': 'Add'}}


class TestLoadConfig:
    """Test cases for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")

        assert config == get_default_config()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == get_default_config()

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("logging: [unclosed", encoding="utf-8")

        assert load_config(path) == get_default_config()

    def test_non_mapping_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        assert load_config(path) == get_default_config()

    def test_user_values_merge_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({'logging': {'level': 'DEBUG'}}), encoding="utf-8")

        config = load_config(path)

        assert config['logging']['level'] == 'DEBUG'
        assert config['logging']['format'] == get_default_config()['logging']['format']
        assert config['form']['seed'] == get_default_seed()

    def test_configured_seed_replaces_default(self, tmp_path):
        seed = {
            'pages': [{'id': 1, 'name': 'Consent'}],
            'fields': [{'id': 1, 'type': 'signature', 'label': 'Signature'}]
        }
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({'form': {'seed': seed}}), encoding="utf-8")

        config = load_config(path)

        assert config['form']['seed'] == seed
        assert get_seed_form(config) == seed

    def test_default_path_is_cached(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({'ui': {'page_title': 'First'}}), encoding="utf-8")

        with patch.object(config_loader, 'CONFIG_FILE', path):
            assert get_config_value('ui', 'page_title') == 'First'

            path.write_text(yaml.safe_dump({'ui': {'page_title': 'Second'}}), encoding="utf-8")
            assert get_config_value('ui', 'page_title') == 'First'

            reload_config()
            assert get_config_value('ui', 'page_title') == 'Second'

    def test_get_config_value_default(self, tmp_path):
        with patch.object(config_loader, 'CONFIG_FILE', tmp_path / "none.yaml"):
            assert get_config_value('ui', 'missing_key', 'fallback') == 'fallback'
            assert get_config_value('no_section', 'key') is None

    def test_get_seed_form_returns_copy(self):
        config = get_default_config()

        seed = get_seed_form(config)
        seed['pages'].clear()

        assert len(config['form']['seed']['pages']) == 3

    def test_get_seed_form_without_form_section(self):
        assert get_seed_form({'app': {}}) == get_default_seed()

    def test_repository_config_matches_defaults(self):
        """The shipped config.yaml starts from the same form as the defaults."""
        repo_config = Path(__file__).parent / "config.yaml"

        config = load_config(repo_config)

        assert config['form']['seed'] == get_default_seed()
