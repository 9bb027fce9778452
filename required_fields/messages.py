"""
Message providers for localized report text.

The rule engine never looks messages up globally. A MessageProvider is
injected alongside it and asked for a stable key such as
FieldsAreRequiredOrInvalid.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

FIELDS_REQUIRED_OR_INVALID = "FieldsAreRequiredOrInvalid"

# Catalog section holding validation warnings
WARNINGS_SECTION = "warnings"

DEFAULT_MESSAGES: Dict[str, str] = {
    FIELDS_REQUIRED_OR_INVALID: "The following fields are required or invalid: ",
}


class MessageProvider(ABC):
    """Looks up localized message text by stable key."""

    @abstractmethod
    def get(self, key: str) -> str:
        """Return the message text for key."""


class StaticMessageProvider(MessageProvider):
    """
    In-memory message provider.

    Keys missing from the supplied mapping fall back to DEFAULT_MESSAGES.
    """

    def __init__(self, messages: Optional[Mapping[str, str]] = None):
        self._messages = dict(messages or {})

    def get(self, key: str) -> str:
        if key in self._messages:
            return self._messages[key]
        return _fallback(key)


class CatalogMessageProvider(MessageProvider):
    """Message provider backed by a parsed YAML message catalog."""

    def __init__(self, catalog: Mapping[str, Any], locale: Optional[str] = None):
        """
        Args:
            catalog: Parsed catalog, e.g. {"warnings": {"FieldsAreRequiredOrInvalid": "..."}}
            locale: Locale the catalog was loaded for (informational)
        """
        self.locale = locale
        if not isinstance(catalog, Mapping):
            raise ValueError(
                f"Message catalog must be a mapping, got {type(catalog).__name__}"
            )
        section = catalog.get(WARNINGS_SECTION) or {}
        if not isinstance(section, Mapping):
            raise ValueError(
                f"Message catalog section '{WARNINGS_SECTION}' must be a mapping, "
                f"got {type(section).__name__}"
            )
        self._messages = {str(k): str(v) for k, v in section.items()}

    def get(self, key: str) -> str:
        if key in self._messages:
            return self._messages[key]
        logger.warning(
            f"Message key {key!r} missing from catalog, using default",
            extra={'locale': self.locale},
        )
        return _fallback(key)


def _fallback(key: str) -> str:
    try:
        return DEFAULT_MESSAGES[key]
    except KeyError:
        raise KeyError(f"Unknown message key: {key}") from None
