"""
Configuration loader utility.
"""
import os
import yaml
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)


def load_config(config_path: str = 'config/config.yaml') -> Dict:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary (empty if the file is missing or invalid)
    """
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config: {e}")
        return {}


def get_setting(config: Dict, path: str, default: Any = None) -> Any:
    """
    Read a nested config value by dotted path, e.g. ``api.base_url``.

    Args:
        config: Configuration dictionary
        path: Dotted key path
        default: Value returned when any key is missing

    Returns:
        Config value or default
    """
    node = config
    for key in path.split('.'):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def setup_logging(log_level: str = 'INFO', log_file: str = None):
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    handlers = [logging.StreamHandler()]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        handlers=handlers
    )

    logger.info(f"Logging configured at {log_level} level")
