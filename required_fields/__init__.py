"""
required-fields: Declarative required-field checks for nested records

This library validates a data record against a compact descriptor grammar:
- Path-qualified fields into nested mappings ("contact/email")
- Type and length constraints ("(str@50)name", "(int@5)zip", "(bool)flag")
- Truthiness checks with a leading asterisk ("*isActive")
- Either-or groups given as nested lists (["email", "*phone"])

Every failing field is reported in one pass.

Example:
    from required_fields import FieldValidationService

    service = FieldValidationService()
    outcome = service.check(["name", "(str@50)contact/email"], data)
    if not outcome.ok:
        print(service.report(outcome)["text"])
"""

from .api import FieldValidationService, FieldsRequiredError, check_required_fields
from .field_spec import FieldSpecParser, FieldType, ParsedSpec, parse_field_spec
from .messages import (
    FIELDS_REQUIRED_OR_INVALID,
    CatalogMessageProvider,
    MessageProvider,
    StaticMessageProvider,
)
from .path_resolver import MISSING, resolve_path
from .rule_engine import RuleEngine, ValidationOutcome, is_present
from .type_validator import validate_type

__version__ = "0.1.0"
__all__ = [
    "FieldValidationService",
    "FieldsRequiredError",
    "check_required_fields",
    "FieldSpecParser",
    "FieldType",
    "ParsedSpec",
    "parse_field_spec",
    "FIELDS_REQUIRED_OR_INVALID",
    "MessageProvider",
    "StaticMessageProvider",
    "CatalogMessageProvider",
    "MISSING",
    "resolve_path",
    "RuleEngine",
    "ValidationOutcome",
    "is_present",
    "validate_type",
]
