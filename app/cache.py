"""
Config cache module for the CRM enum schema and alias tables.

Both files are read once per process and treated as immutable
afterwards, so requests never touch the disk for them.
"""

import json
import os
from typing import Dict, Any, Optional, Tuple
from threading import Lock

import yaml

from app.services.normalizer import normalize_alias_key

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "config")


class ConfigCache:
    """Thread-safe configuration cache."""

    def __init__(self, config_dir: str = CONFIG_DIR):
        self.config_dir = config_dir
        self._enum_schema: Optional[Dict[str, Tuple[str, ...]]] = None
        self._aliases: Optional[Dict[str, Dict[str, str]]] = None
        self._lock = Lock()

    def _load_json(self, filename: str) -> Dict[str, Any]:
        with open(os.path.join(self.config_dir, filename), "r", encoding="utf-8") as f:
            return json.load(f)

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        with open(os.path.join(self.config_dir, filename), "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def get_enum_schema(self) -> Dict[str, Tuple[str, ...]]:
        """
        Get the CRM picklist schema, loading from disk if not cached.

        Returns:
            CRM property name -> allowed option values
        """
        if self._enum_schema is None:
            with self._lock:
                if self._enum_schema is None:  # Double-check locking
                    raw = self._load_json("hs_contact_enums.json")
                    self._enum_schema = {
                        entry["name"]: tuple(
                            option["value"] for option in entry.get("options") or []
                        )
                        for entry in raw.get("enums", [])
                    }
        return self._enum_schema

    def get_aliases(self) -> Dict[str, Dict[str, str]]:
        """
        Get alias tables keyed by answer field name.

        Alias keys are stored already normalized so lookups match
        normalize_alias_key output.
        """
        if self._aliases is None:
            with self._lock:
                if self._aliases is None:
                    raw = self._load_yaml("aliases.yaml").get("aliases", {})
                    self._aliases = {
                        field: {normalize_alias_key(str(k)): str(v) for k, v in table.items()}
                        for field, table in raw.items()
                    }
        return self._aliases

    def clear_cache(self):
        """Clear all cached data (useful for testing)."""
        with self._lock:
            self._enum_schema = None
            self._aliases = None


# Global cache instance
config_cache = ConfigCache()
