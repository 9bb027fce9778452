"""
Rule Engine - Required Field Checks

Evaluates a list of field descriptors against a data record and collects
every descriptor that fails. Items are either a descriptor string or an
either-or group (a list/tuple of descriptor strings) that passes as soon as
one member passes.

Example:
    engine = RuleEngine()
    outcome = engine.check_required_fields(
        ["name", "*isActive", ["email", "*phone"]],
        {"name": "Jo", "isActive": 0, "phone": ""},
    )
    outcome.missing_or_invalid  # ["email or *phone"]
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .field_spec import FieldSpecParser, ParsedSpec
from .messages import FIELDS_REQUIRED_OR_INVALID, MessageProvider, StaticMessageProvider
from .path_resolver import MISSING, resolve_path
from .type_validator import is_numeric, validate_type

logger = logging.getLogger(__name__)

GROUP_JOINER = " or "
LABEL_JOINER = ", "

Descriptor = str
DescriptorItem = Union[Descriptor, Sequence[Descriptor]]


def is_present(value: Any) -> bool:
    """
    Truthiness rule for `*` descriptors.

    A value is present when it is truthy or numeric, so 0, 0.0 and "0"
    count as present while None, False, "" and empty containers do not.
    """
    return bool(value) or is_numeric(value)


def _is_group(item: Any) -> bool:
    return isinstance(item, (list, tuple))


class ValidationOutcome:
    """Aggregate result of one check_required_fields call."""

    def __init__(self, missing_or_invalid: Optional[List[str]] = None):
        self.missing_or_invalid: List[str] = list(missing_or_invalid or [])

    @property
    def ok(self) -> bool:
        """True when no descriptor failed."""
        return not self.missing_or_invalid

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        return f"ValidationOutcome(missing_or_invalid={self.missing_or_invalid!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationOutcome):
            return NotImplemented
        return self.missing_or_invalid == other.missing_or_invalid

    def message(self, prefix: str = "") -> str:
        """Prefix followed by the failure labels joined with ', '."""
        return prefix + LABEL_JOINER.join(self.missing_or_invalid)

    def to_report(self, prefix: str = "") -> Dict[str, str]:
        """
        Build the report object handed to the caller's transport.

        Returns:
            {"status": "ok"} on success, otherwise
            {"status": "error", "text": prefix + labels}
        """
        if self.ok:
            return {"status": "ok"}
        return {"status": "error", "text": self.message(prefix)}


class RuleEngine:
    """Applies parser, path resolver and type validator to descriptor lists."""

    def __init__(
        self,
        message_provider: Optional[MessageProvider] = None,
        parser: Optional[FieldSpecParser] = None,
    ):
        """
        Args:
            message_provider: Source of the report prefix (defaults to built-in English)
            parser: Descriptor parser (defaults to FieldSpecParser)
        """
        self.message_provider = message_provider or StaticMessageProvider()
        self.parser = parser or FieldSpecParser()

    def evaluate_spec(self, spec: ParsedSpec, record: Any) -> bool:
        """Evaluate an already parsed descriptor against a record."""
        value = resolve_path(spec.path, record)
        if value is MISSING:
            return False
        if spec.require_truthy and not is_present(value):
            return False
        return validate_type(value, spec.type, spec.max_length)

    def evaluate_one(self, descriptor: Descriptor, record: Any) -> bool:
        """
        Evaluate a single descriptor string.

        Args:
            descriptor: Descriptor such as "*(str@50)contact/email"
            record: Data record to check

        Returns:
            True if the field resolves, passes the truthiness check when
            required, and satisfies its type/length constraint
        """
        return self.evaluate_spec(self.parser.parse(descriptor), record)

    def check_required_fields(
        self, descriptors: Sequence[DescriptorItem], record: Any
    ) -> ValidationOutcome:
        """
        Check all descriptors and collect failures in input order.

        Args:
            descriptors: Descriptor strings and either-or groups
            record: Data record to check

        Returns:
            ValidationOutcome listing failing descriptors; a failing group
            contributes one label with its members joined by " or "

        Raises:
            TypeError: If an item or group member is not a string
        """
        failures: List[str] = []

        for item in descriptors:
            if _is_group(item):
                members = list(item)
                if not any(self.evaluate_one(member, record) for member in members):
                    failures.append(GROUP_JOINER.join(members))
            elif not self.evaluate_one(item, record):
                failures.append(item)

        outcome = ValidationOutcome(failures)
        if not outcome.ok:
            logger.debug(
                f"Required field check failed for {len(failures)} item(s)",
                extra={'missing_or_invalid': failures},
            )
        return outcome

    def report(self, outcome: ValidationOutcome) -> Dict[str, str]:
        """Report object for an outcome, prefixed with the localized message."""
        return outcome.to_report(self.message_provider.get(FIELDS_REQUIRED_OR_INVALID))

    def discover_fields(self, descriptors: Sequence[DescriptorItem]) -> List[Dict[str, Any]]:
        """
        Describe descriptors without evaluating them.

        Returns:
            One entry per item: {"descriptor", "spec"} for plain descriptors,
            {"group", "members": [...]} for either-or groups
        """
        result = []
        for item in descriptors:
            if _is_group(item):
                members = list(item)
                result.append({
                    "group": GROUP_JOINER.join(members),
                    "members": [self._describe(member) for member in members],
                })
            else:
                result.append(self._describe(item))
        return result

    def _describe(self, descriptor: Descriptor) -> Dict[str, Any]:
        return {
            "descriptor": descriptor,
            "spec": self.parser.parse(descriptor).to_dict(),
        }
