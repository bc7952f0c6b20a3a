"""
JSON-file persistence for the channel configuration.
Holds a single key-value record: CONFIG_KEY -> list of 8 channel objects.
"""
import json
import logging
import os

import config

logger = logging.getLogger(__name__)


class ConfigStore:
    """Reads and writes the persisted channel record in a JSON file."""

    def __init__(self, path=config.CONFIG_FILE, key=config.CONFIG_KEY):
        self.path = path
        self.key = key

    def load(self):
        """
        Load the stored channel list.

        Returns:
            The stored value under the key, or None if the file is missing,
            unreadable or not a JSON object. Validation of the value itself
            is left to the caller.
        """
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to load channel configuration from %s: %s", self.path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring channel configuration in %s: not a JSON object", self.path)
            return None
        return data.get(self.key)

    def save(self, records):
        """
        Write the channel list under the key.

        Returns:
            bool: True on success. Failures are logged, never raised.
        """
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump({self.key: records}, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save channel configuration to %s: %s", self.path, e)
            return False
        return True
