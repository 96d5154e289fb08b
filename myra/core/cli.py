"""
Handles command-line interface parsing and actions.
"""
import argparse
import sys

from myra import __version__
from myra.config import ConfigurationError, load_config, validate_required_env
from myra.utils.logging import get_logger

_SECRET_MARKERS = ("TOKEN", "SECRET", "API_KEY", "REDIS_URL")


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Myra Discord assistant")
    parser.add_argument('--debug', action='store_true', help='Enable debug logging.')
    parser.add_argument('--config-check', action='store_true', help='Validate configuration and exit.')
    parser.add_argument('--version', action='store_true', help='Show version info and exit.')
    return parser.parse_args(argv)


def show_version_info():
    """Display version and system information."""
    print(f"Myra Discord Bot - Version {__version__}")
    print(f"Python Version: {sys.version}")


def redact_config_value(key: str, value):
    if value and any(marker in key for marker in _SECRET_MARKERS):
        return '********'
    return value


def validate_configuration_only():
    """Validate configuration and exit."""
    logger = get_logger(__name__)
    try:
        logger.info("--- Running Configuration-Only Validation ---", extra={'subsys': 'core', 'event': 'config_check_start'})
        config = load_config()
        validate_required_env(config)
        logger.info("Configuration validation successful. The following settings are active:", extra={'subsys': 'core', 'event': 'config_valid_start'})

        for key, value in config.items():
            logger.info(f"  • {key}: {redact_config_value(key, value)}", extra={'subsys': 'core', 'event': 'config_valid'})

    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}", extra={'subsys': 'core', 'event': 'config_fail'})
        sys.exit(1)
