"""Configuration loading and message catalog fetching with caching."""

import hashlib
import logging
import os
import time
import urllib.parse
from importlib.resources import files
from pathlib import Path
from typing import Any, Dict, Optional

import requests
import yaml
from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "messages_location": {"type": "string", "minLength": 1},
        "default_locale": {"type": "string", "pattern": "^[A-Za-z]{2,3}([-_][A-Za-z0-9]+)*$"},
        "messages_max_age_seconds": {"type": "number", "minimum": 0},
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "required": ["messages_location", "default_locale"],
}


class ConfigLoader:
    """Handles local configuration and message catalog loading."""

    # Hardcoded cache directory for remote message catalogs
    CACHE_DIR = Path.home() / ".cache" / "required-fields"
    DEFAULT_MAX_AGE = 1800
    FETCH_TIMEOUT = 10

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_path: Optional path to a YAML config file. Defaults to the
                local-config.yaml bundled with the package.

        Raises:
            ValueError: If the config does not match CONFIG_SCHEMA
        """
        if config_path:
            self.local_config_path = os.path.abspath(config_path)
            with open(self.local_config_path) as f:
                self.local_config = yaml.safe_load(f) or {}
        else:
            config_file = files('required_fields').joinpath('local-config.yaml')
            self.local_config_path = str(config_file)
            with config_file.open('r') as f:
                self.local_config = yaml.safe_load(f) or {}

        self._validate_config(self.local_config)
        self.cache_dir = self.CACHE_DIR
        self._catalog_loaded_at: Dict[str, float] = {}

    def _validate_config(self, config: Any) -> None:
        """Validate config structure against CONFIG_SCHEMA."""
        errors = sorted(Draft7Validator(CONFIG_SCHEMA).iter_errors(config), key=str)
        if errors:
            details = "; ".join(
                f"{'/'.join(str(p) for p in e.path) or 'root'}: {e.message}"
                for e in errors
            )
            raise ValueError(f"Invalid configuration in {self.local_config_path}: {details}")

    def get_default_locale(self) -> str:
        return self.local_config["default_locale"]

    def get_messages_max_age(self) -> float:
        return self.local_config.get("messages_max_age_seconds", self.DEFAULT_MAX_AGE)

    def get_log_level(self) -> str:
        return self.local_config.get("log_level", "WARNING")

    def get_messages_uri(self, locale: str) -> str:
        """Construct catalog URI: {messages_location}/{locale}.yaml"""
        location = self.local_config["messages_location"]
        separator = '/' if not location.endswith('/') else ''
        return f"{location}{separator}{locale}.yaml"

    def load_catalog(self, locale: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the message catalog for a locale.

        Args:
            locale: Locale name, defaults to default_locale

        Returns:
            Parsed YAML catalog

        Raises:
            FileNotFoundError: If a local catalog does not exist
            RuntimeError: If a remote catalog cannot be fetched
            ValueError: If the URI scheme is unsupported
        """
        locale = locale or self.get_default_locale()
        catalog = self._load_config_from_uri(self.get_messages_uri(locale))
        self._catalog_loaded_at[locale] = time.time()
        return catalog or {}

    def _load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file from disk."""
        with open(path, encoding='utf-8') as f:
            return yaml.safe_load(f)

    def _load_config_from_uri(self, uri: str) -> Dict[str, Any]:
        """
        Load YAML from URI (with caching for remote URIs).

        Supports:
        - Relative paths - resolved against the config file directory
        - file:// - Local filesystem (absolute paths)
        - https:// / http:// - Remote, cached under CACHE_DIR
        """
        parsed = urllib.parse.urlparse(uri)

        if not parsed.scheme:
            config_dir = os.path.dirname(os.path.abspath(self.local_config_path))
            return self._load_yaml(os.path.join(config_dir, uri))

        if parsed.scheme == 'file':
            return self._load_yaml(urllib.parse.unquote(parsed.path))

        if parsed.scheme in ('http', 'https'):
            cache_key = hashlib.sha256(uri.encode()).hexdigest()
            cache_path = self.cache_dir / f"messages_{cache_key}.yaml"

            if cache_path.exists() and self._cache_file_age(cache_path) <= self.get_messages_max_age():
                logger.debug(f"Using cached message catalog for {uri}")
                return self._load_yaml(str(cache_path))

            content = self._fetch_uri(uri)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(content, encoding='utf-8')
            return yaml.safe_load(content)

        raise ValueError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

    def _cache_file_age(self, path: Path) -> float:
        return time.time() - path.stat().st_mtime

    def _fetch_uri(self, uri: str) -> str:
        """Fetch content from HTTP/HTTPS URI."""
        try:
            response = requests.get(uri, timeout=self.FETCH_TIMEOUT)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            raise RuntimeError(f"Failed to fetch message catalog from {uri}: {e}") from e

    def get_catalog_age(self, locale: Optional[str] = None) -> Optional[float]:
        """
        Get age of a loaded catalog in seconds.

        Returns:
            Age in seconds, or None if the catalog was never loaded
        """
        loaded_at = self._catalog_loaded_at.get(locale or self.get_default_locale())
        if loaded_at is None:
            return None
        return time.time() - loaded_at
