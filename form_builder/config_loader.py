"""
Configuration loading utilities for the form builder.

This module loads the application configuration from config.yaml, merges it
over built-in defaults and exposes the seed form the editor starts with.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("config.yaml")

_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_seed() -> Dict[str, Any]:
    """Starting form used when no seed is configured."""
    return {
        'pages': [
            {'id': 1, 'name': 'Personal Information'},
            {'id': 2, 'name': 'Medical History'},
            {'id': 3, 'name': 'Insurance Information'}
        ],
        'fields': [
            {'id': 1, 'type': 'patient-name', 'label': 'Full Name', 'required': True},
            {'id': 2, 'type': 'email', 'label': 'Email Address', 'required': True},
            {'id': 3, 'type': 'patient-phone', 'label': 'Phone Number', 'required': True},
            {'id': 4, 'type': 'date-of-birth', 'label': 'Date of Birth', 'required': True}
        ],
        'active_page_index': 0
    }


def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'Form Builder',
            'version': '1.0.0',
            'debug': False
        },
        'ui': {
            'page_title': 'Form Builder',
            'sidebar_title': 'Add Fields'
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        },
        'form': {
            'seed': get_default_seed()
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration from a YAML file.

    A missing, empty or malformed file falls back to the defaults. The result
    for the default path is cached until reload_config() is called.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    global _config_cache

    use_cache = config_path is None
    if use_cache and _config_cache is not None:
        return _config_cache

    path = Path(config_path) if config_path is not None else CONFIG_FILE
    config = _read_config(path)

    if use_cache:
        _config_cache = config
    return config


def _read_config(config_path: Path) -> Dict[str, Any]:
    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config
    except OSError as e:
        logger.error(f"Error reading configuration {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    if user_config is None:
        logger.warning(f"Configuration file is empty: {config_path}")
        return default_config

    if not isinstance(user_config, dict):
        logger.error(f"Configuration file is not a valid dictionary: {config_path}")
        logger.info("Using default configuration")
        return default_config

    config = deep_merge(default_config, user_config)

    # A configured seed replaces the default form wholesale
    seed = user_config.get('form', {}).get('seed') if isinstance(user_config.get('form'), dict) else None
    if isinstance(seed, dict):
        config['form']['seed'] = deepcopy(seed)

    logger.info(f"Successfully loaded configuration from {config_path}")
    return config


def reload_config() -> Dict[str, Any]:
    """
    Force reload of configuration from file.
    Useful for testing or when configuration changes.
    """
    global _config_cache
    _config_cache = None
    return load_config()


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'ui', 'logging')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    config = load_config()
    section_values = config.get(section, {})
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def get_seed_form(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return a copy of the configured seed form."""
    if config is None:
        config = load_config()
    form_section = config.get('form') or {}
    seed = form_section.get('seed') if isinstance(form_section, dict) else None
    if not isinstance(seed, dict):
        return get_default_seed()
    return deepcopy(seed)
