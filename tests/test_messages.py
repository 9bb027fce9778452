"""
Tests for message providers.
"""
import logging

import pytest

from required_fields.messages import (
    DEFAULT_MESSAGES,
    FIELDS_REQUIRED_OR_INVALID,
    CatalogMessageProvider,
    StaticMessageProvider,
)


class TestStaticMessageProvider:
    """In-memory provider used for injection in tests."""

    def test_supplied_message(self):
        provider = StaticMessageProvider({FIELDS_REQUIRED_OR_INVALID: "Missing: "})
        assert provider.get(FIELDS_REQUIRED_OR_INVALID) == "Missing: "

    def test_falls_back_to_default(self):
        provider = StaticMessageProvider()
        assert provider.get(FIELDS_REQUIRED_OR_INVALID) == DEFAULT_MESSAGES[FIELDS_REQUIRED_OR_INVALID]

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            StaticMessageProvider().get("NoSuchMessage")


class TestCatalogMessageProvider:
    """Provider built from a parsed YAML catalog."""

    def test_reads_warnings_section(self):
        provider = CatalogMessageProvider(
            {"warnings": {FIELDS_REQUIRED_OR_INVALID: "Champs requis : "}}, locale="fr"
        )
        assert provider.get(FIELDS_REQUIRED_OR_INVALID) == "Champs requis : "
        assert provider.locale == "fr"

    def test_missing_key_logs_and_falls_back(self, caplog):
        provider = CatalogMessageProvider({"warnings": {}}, locale="fr")
        with caplog.at_level(logging.WARNING, logger="required_fields.messages"):
            text = provider.get(FIELDS_REQUIRED_OR_INVALID)
        assert text == DEFAULT_MESSAGES[FIELDS_REQUIRED_OR_INVALID]
        assert FIELDS_REQUIRED_OR_INVALID in caplog.text

    def test_missing_section(self):
        provider = CatalogMessageProvider({})
        assert provider.get(FIELDS_REQUIRED_OR_INVALID) == DEFAULT_MESSAGES[FIELDS_REQUIRED_OR_INVALID]

    def test_invalid_section_raises(self):
        with pytest.raises(ValueError):
            CatalogMessageProvider({"warnings": ["not", "a", "mapping"]})

    @pytest.mark.parametrize("catalog", [["warnings"], "warnings: {}", 42])
    def test_non_mapping_catalog_raises(self, catalog):
        """A catalog file whose top level is a list or scalar is rejected."""
        with pytest.raises(ValueError, match="must be a mapping"):
            CatalogMessageProvider(catalog)
