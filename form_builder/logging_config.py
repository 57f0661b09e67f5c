"""
Logging setup for the form builder, driven by the 'logging' config section.
"""

import logging
from typing import Dict, Any, Optional

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logging_level(level_str: Optional[str]) -> int:
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    if not isinstance(level_str, str):
        return logging.INFO
    return level_map.get(level_str.upper(), logging.INFO)


def configure_logging(config: Dict[str, Any]) -> int:
    """
    Configure root logging from the application config.

    Args:
        config: Full configuration dictionary (see config_loader.load_config)

    Returns:
        The numeric level that was applied
    """
    logging_section = config.get('logging') or {}
    level = get_logging_level(logging_section.get('level', 'INFO'))
    log_format = logging_section.get('format') or DEFAULT_LOG_FORMAT

    logging.basicConfig(level=level, format=log_format)
    logging.getLogger('form_builder').setLevel(level)
    logging.getLogger(__name__).info(f"Logging configured to level: {logging.getLevelName(level)}")
    return level
