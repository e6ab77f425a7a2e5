"""
Configuration Manager for Ports Info
Handles scan and logging preferences stored as JSON
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Tuple

from gi.repository import GObject

from .platform_utils import get_config_dir

logger = logging.getLogger(__name__)

# Increment this whenever the configuration format changes
CONFIG_VERSION = 1

DEFAULT_CONFIG: Dict[str, Any] = {
    'config_version': CONFIG_VERSION,
    'scan': {
        'timeout': 5.0,
        'preferred_tool': 'ss',
        'elevation_helper': '',
        'start_limited': False,
    },
    'logging': {
        'debug': False,
    },
}


class Config(GObject.Object):
    """Configuration manager for Ports Info"""

    __gsignals__ = {
        'setting-changed': (GObject.SignalFlags.RUN_FIRST, None, (str, object)),
    }

    def __init__(self, config_file: str = None):
        super().__init__()
        self.config_file = config_file or os.path.join(get_config_dir(), 'config.json')
        self.config_data = self.load_json_config()

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values"""
        return copy.deepcopy(DEFAULT_CONFIG)

    def load_json_config(self) -> Dict[str, Any]:
        """Load configuration from JSON file"""
        try:
            if not os.path.exists(self.config_file):
                default_config = self.get_default_config()
                self.save_json_config(default_config)
                return default_config

            with open(self.config_file, 'r') as f:
                config = json.load(f)

            stored_version = config.get('config_version', 0) if isinstance(config, dict) else 0
            if stored_version < CONFIG_VERSION:
                backup_file = f"{self.config_file}.bak"
                try:
                    os.replace(self.config_file, backup_file)
                    logger.warning(
                        "Outdated config version %s detected; backing up to %s and regenerating defaults",
                        stored_version,
                        backup_file,
                    )
                except OSError:
                    os.remove(self.config_file)
                    logger.warning(
                        "Outdated config version %s detected; old config removed",
                        stored_version,
                    )
                config = self.get_default_config()
                self.save_json_config(config)
                return config

            config, updated = self._ensure_config_defaults(config)
            if updated:
                self.save_json_config(config)
            return config
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load JSON config: {e}")
            return self.get_default_config()

    def save_json_config(self, config_data: Dict[str, Any] = None):
        """Save configuration to JSON file"""
        if config_data is None:
            config_data = self.config_data
        try:
            os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
            with open(self.config_file, 'w') as f:
                json.dump(config_data, f, indent=2)
            logger.debug("Configuration saved to JSON file")
        except OSError as e:
            logger.error(f"Failed to save JSON config: {e}")

    def _ensure_config_defaults(self, config: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """Ensure newly added keys exist in the provided config dict."""
        updated = False
        defaults = self.get_default_config()
        for section, values in defaults.items():
            if not isinstance(values, dict):
                continue
            current = config.get(section)
            if not isinstance(current, dict):
                config[section] = values
                updated = True
                continue
            for key, value in values.items():
                if key not in current:
                    current[key] = value
                    updated = True
        return config, updated

    def get_setting(self, key: str, default=None):
        """Get a setting value using a dotted key such as ``scan.timeout``"""
        value = self.config_data
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set_setting(self, key: str, value: Any):
        """Set a setting value and persist it"""
        keys = key.split('.')
        current = self.config_data
        for k in keys[:-1]:
            if k not in current or not isinstance(current[k], dict):
                current[k] = {}
            current = current[k]
        current[keys[-1]] = value
        self.save_json_config()

        self.emit('setting-changed', key, value)
        logger.debug(f"Setting {key} = {value}")
