"""Configuration, logging and settings utilities."""
from .config_loader import load_config, get_setting, setup_logging
from .settings_store import Settings, SettingsStore, SettingsError

__all__ = ['load_config', 'get_setting', 'setup_logging', 'Settings', 'SettingsStore', 'SettingsError']
