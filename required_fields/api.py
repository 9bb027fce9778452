"""
Public API for required-fields

This is the "front door" - the main entry point for required field checks.
"""

import json
import logging
import time
import urllib.parse
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

from .config_loader import ConfigLoader
from .messages import CatalogMessageProvider, FIELDS_REQUIRED_OR_INVALID, MessageProvider
from .rule_engine import DescriptorItem, RuleEngine, ValidationOutcome

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB


class FieldsRequiredError(Exception):
    """
    Raised by FieldValidationService.require() when fields fail.

    Carries the outcome and the report object so the caller's transport
    can serialize it (e.g. as a JSON error response) and stop the request.
    """

    def __init__(self, outcome: ValidationOutcome, report: Dict[str, str]):
        super().__init__(report["text"])
        self.outcome = outcome
        self.report = report

    @property
    def missing_or_invalid(self) -> List[str]:
        return self.outcome.missing_or_invalid

    def to_dict(self) -> Dict[str, str]:
        return dict(self.report)


class FieldValidationService:
    """
    Main required-fields service class.

    Wires the rule engine to a message provider built from the configured
    catalog. Field failures are returned as data by check() or raised as
    FieldsRequiredError by require(); the caller decides how to report.

    Example:
        from required_fields import FieldValidationService

        service = FieldValidationService()
        outcome = service.check(["name", "(str@50)contact/email"], data)
        if not outcome.ok:
            return service.report(outcome)  # {"status": "error", "text": ...}
    """

    CHECK_INTERVAL = 300  # Check catalog freshness every 5 minutes

    def __init__(
        self,
        config_path: Optional[str] = None,
        message_provider: Optional[MessageProvider] = None,
        locale: Optional[str] = None,
    ):
        """
        Initialize the service.

        Args:
            config_path: Optional YAML config path (defaults to bundled local-config.yaml)
            message_provider: Injected provider; skips catalog loading when given
            locale: Catalog locale, defaults to the configured default_locale

        Raises:
            ValueError: If the configuration is invalid
            RuntimeError: If a remote catalog cannot be fetched
        """
        self.config_loader = ConfigLoader(config_path)
        self.locale = locale or self.config_loader.get_default_locale()
        self._injected_provider = message_provider
        self._initialize()

    def _initialize(self):
        """Internal initialization logic (used by __init__ and reload_messages)."""
        if self._injected_provider is not None:
            self.message_provider = self._injected_provider
        else:
            catalog = self.config_loader.load_catalog(self.locale)
            self.message_provider = CatalogMessageProvider(catalog, locale=self.locale)
            logger.debug(f"Loaded message catalog for locale {self.locale!r}")

        self.engine = RuleEngine(message_provider=self.message_provider)
        self._last_check_time = time.time()

    def _check_and_reload_if_stale(self):
        """
        Reload the message catalog if it is older than messages_max_age_seconds.

        Checks at most every CHECK_INTERVAL seconds. No-op for injected providers.
        """
        if self._injected_provider is not None:
            return
        now = time.time()

        if now - self._last_check_time < self.CHECK_INTERVAL:
            return

        self._last_check_time = now

        max_age = self.config_loader.get_messages_max_age()
        age = self.get_messages_age()
        if age is not None and age > max_age:
            logger.info(f"Message catalog stale ({age:.0f}s > {max_age}s), reloading")
            self.reload_messages()

    def check(self, descriptors: Sequence[DescriptorItem], data: Any) -> ValidationOutcome:
        """
        Check required fields in a data record.

        Args:
            descriptors: Descriptor strings and either-or groups, e.g.
                ["name", "*isActive", ["(str)contact/email", "*contact/phone"]]
            data: Record to check (nested mappings)

        Returns:
            ValidationOutcome; outcome.ok is True when every item passed

        Raises:
            TypeError: If a descriptor is not a string
        """
        self._check_and_reload_if_stale()
        return self.engine.check_required_fields(descriptors, data)

    def require(self, descriptors: Sequence[DescriptorItem], data: Any) -> None:
        """
        Validation gate: return on success, raise on any failure.

        Raises:
            FieldsRequiredError: Carrying {"status": "error", "text": ...}
        """
        outcome = self.check(descriptors, data)
        if not outcome.ok:
            raise FieldsRequiredError(outcome, self.report(outcome))

    def report(self, outcome: ValidationOutcome) -> Dict[str, str]:
        """Localized report object for an outcome."""
        return self.engine.report(outcome)

    def get_message(self, key: str = FIELDS_REQUIRED_OR_INVALID) -> str:
        return self.message_provider.get(key)

    def discover_fields(self, descriptors: Sequence[DescriptorItem]) -> List[Dict[str, Any]]:
        """
        Describe how each descriptor is parsed, without checking any data.

        Useful for reviewing descriptor lists: unrecognized type tokens and
        other degraded parses are listed under spec["diagnostics"].

        Example:
            for entry in service.discover_fields(["(strng)name"]):
                print(entry["descriptor"], entry["spec"]["diagnostics"])
        """
        self._check_and_reload_if_stale()
        return self.engine.discover_fields(descriptors)

    def batch_check(
        self,
        records: Sequence[Any],
        descriptors: Sequence[DescriptorItem],
        id_fields: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """
        Check the same descriptors against multiple records.

        Args:
            records: List of record dicts
            descriptors: Descriptor strings and either-or groups
            id_fields: Field names used to identify each record in results

        Returns:
            List of per-record results in input order, each containing:
                - record_id: Extracted record identifier
                - status: "ok" or "error"
                - missing_or_invalid: Failure labels
                - text: Report text (error results only)
        """
        results = []
        for record in records:
            outcome = self.check(descriptors, record)
            result = {
                "record_id": self._extract_id(record, id_fields),
                "missing_or_invalid": outcome.missing_or_invalid,
            }
            result.update(self.report(outcome))
            results.append(result)
        return results

    def batch_file_check(
        self,
        file_uri: str,
        descriptors: Sequence[DescriptorItem],
        id_fields: Sequence[str],
    ) -> List[Dict[str, Any]]:
        """
        Check records loaded from a JSON file.

        Args:
            file_uri: URI to file containing records (file://, http://, https://)
            descriptors: Descriptor strings and either-or groups
            id_fields: Field names used to identify each record in results

        Returns:
            List of per-record results (same format as batch_check())

        Raises:
            RuntimeError: If file loading fails
        """
        records = self._load_records_from_file(file_uri)
        return self.batch_check(records, descriptors, id_fields)

    def reload_messages(self):
        """
        Reload the message catalog from its configured location.

        No-op for injected message providers.
        """
        self._initialize()
        logger.info(f"Message catalog reloaded for locale {self.locale!r}")

    def get_messages_age(self) -> Optional[float]:
        """
        Get age of the loaded message catalog in seconds.

        Returns:
            float: Age in seconds, or None when a provider was injected
        """
        if self._injected_provider is not None:
            return None
        return self.config_loader.get_catalog_age(self.locale)

    def _extract_id(self, record, id_fields):
        """
        Extract record identifier from record data.

        Returns:
            String identifier (concatenated if multiple fields), or "unknown"
        """
        id_parts = []
        if isinstance(record, Mapping):
            for field in id_fields:
                if field in record:
                    id_parts.append(str(record[field]))

        if not id_parts:
            return "unknown"

        return "-".join(id_parts)

    def _load_records_from_file(self, file_uri):
        """
        Load records from file URI.

        Supports:
        - file:// URIs (local files)
        - http://, https:// URIs (remote files)

        Returns:
            List of record dicts

        Raises:
            RuntimeError: If file loading fails
        """
        parsed = urllib.parse.urlparse(file_uri)

        try:
            if parsed.scheme == "file":
                # Resolve to canonical path to prevent traversal via encoded '..'
                file_path = Path(urllib.parse.unquote(parsed.path)).resolve()
                if not file_path.is_file():
                    raise ValueError(f"File not found or not a regular file: {file_path}")
                with open(file_path, encoding="utf-8") as f:
                    data = json.load(f)
            elif parsed.scheme in ("http", "https"):
                data = json.loads(self._fetch_bounded(file_uri).decode("utf-8"))
            else:
                raise ValueError(f"Unsupported URI scheme: {parsed.scheme}")

            if isinstance(data, list):
                return data
            return [data]

        except RuntimeError:
            raise
        except Exception as e:
            raise RuntimeError(f"Failed to load records from {file_uri}: {e}") from e

    def _fetch_bounded(self, file_uri):
        """Fetch a remote file with timeout and bounded read."""
        response = requests.get(file_uri, timeout=30, stream=True)
        try:
            response.raise_for_status()
            raw = bytearray()
            for chunk in response.iter_content(chunk_size=64 * 1024):
                raw.extend(chunk)
                if len(raw) > MAX_FILE_SIZE:
                    raise RuntimeError(
                        f"Remote file exceeds {MAX_FILE_SIZE // (1024 * 1024)} MB limit"
                    )
            return bytes(raw)
        finally:
            response.close()


def check_required_fields(
    descriptors: Sequence[DescriptorItem],
    data: Any,
    message_provider: Optional[MessageProvider] = None,
) -> ValidationOutcome:
    """
    Check required fields without building a configured service.

    Example:
        outcome = check_required_fields(["name", ["email", "*phone"]], data)
        if not outcome:
            print(outcome.missing_or_invalid)
    """
    return RuleEngine(message_provider=message_provider).check_required_fields(descriptors, data)
