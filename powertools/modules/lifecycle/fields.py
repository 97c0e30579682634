"""
Settable repository fields.

The field table maps each field name to its value kind and a setter that
writes the parsed value onto a RepositoryRecord. Lookup is case-insensitive
and the table is fixed at import time.

Usage:
    from powertools.modules.lifecycle.fields import lookup_field

    descriptor = lookup_field("accessrestriction")
    value = descriptor.parse(["VIEW"])
    descriptor.setter(record, value)
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from powertools.adapters.registry.models import (
    AccessRestriction,
    AuthorizationControl,
    CommitMessageRenderer,
    FederationStrategy,
    RepositoryRecord,
)
from powertools.common.exceptions import InvalidValueError, UnknownFieldError

__all__ = [
    "FieldKind",
    "FieldDescriptor",
    "FIELDS",
    "field_names",
    "lookup_field",
    "parse_bool",
    "parse_int",
]

TRUE_TOKENS = frozenset({"t", "true", "yes", "on", "y", "1"})
FALSE_TOKENS = frozenset({"f", "false", "no", "off", "n", "0"})

_INT_PATTERN = re.compile(r"[+-]?\d+")


class FieldKind(str, Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    STRING_LIST = "string_list"
    ENUM = "enum"


def parse_bool(value: str) -> bool:
    """Parse a boolean token (t/true/yes/on/y/1 or f/false/no/off/n/0)."""
    token = value.strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    raise InvalidValueError(f"Invalid boolean value {value}")


def parse_int(value: str) -> int:
    """Parse a signed base-10 integer."""
    token = value.strip()
    if not _INT_PATTERN.fullmatch(token):
        raise InvalidValueError(f"Invalid int value {value}")
    return int(token)


def _attr_setter(attribute: str) -> Callable[[RepositoryRecord, Any], None]:
    def setter(record: RepositoryRecord, value: Any) -> None:
        setattr(record, attribute, value)

    return setter


@dataclass(frozen=True)
class FieldDescriptor:
    """One settable field: its public name, value kind and setter."""

    name: str
    kind: FieldKind
    setter: Callable[[RepositoryRecord, Any], None]
    enum_type: type[Enum] | None = None

    def parse(self, tokens: list[str]) -> Any:
        """
        Convert raw value tokens into the value the setter expects.

        Lists keep the tokens as given; every other kind works on the tokens
        joined by single spaces and trimmed.

        Raises:
            InvalidValueError: If a boolean or integer does not parse
        """
        if self.kind == FieldKind.STRING_LIST:
            return list(tokens)
        value = " ".join(tokens).strip()
        if self.kind == FieldKind.BOOLEAN:
            return parse_bool(value)
        if self.kind == FieldKind.INTEGER:
            return parse_int(value)
        if self.kind == FieldKind.ENUM and self.enum_type is not None:
            return self.enum_type.from_name(value)  # type: ignore[attr-defined]
        return value


def _field(
    name: str, kind: FieldKind, attribute: str, enum_type: type[Enum] | None = None
) -> FieldDescriptor:
    return FieldDescriptor(name, kind, _attr_setter(attribute), enum_type)


FIELDS: tuple[FieldDescriptor, ...] = (
    _field("acceptNewPatchsets", FieldKind.BOOLEAN, "accept_new_patchsets"),
    _field("acceptNewTickets", FieldKind.BOOLEAN, "accept_new_tickets"),
    _field("accessRestriction", FieldKind.ENUM, "access_restriction", AccessRestriction),
    _field("allowAuthenticated", FieldKind.BOOLEAN, "allow_authenticated"),
    _field("allowForks", FieldKind.BOOLEAN, "allow_forks"),
    _field("authorizationControl", FieldKind.ENUM, "authorization_control", AuthorizationControl),
    _field("commitMessageRenderer", FieldKind.ENUM, "commit_message_renderer", CommitMessageRenderer),
    _field("description", FieldKind.STRING, "description"),
    _field("federationSets", FieldKind.STRING_LIST, "federation_sets"),
    _field("federationStrategy", FieldKind.ENUM, "federation_strategy", FederationStrategy),
    _field("frequency", FieldKind.STRING, "frequency"),
    _field("gcThreshold", FieldKind.STRING, "gc_threshold"),
    _field("gcPeriod", FieldKind.INTEGER, "gc_period"),
    _field("incrementalPushTagPrefix", FieldKind.STRING, "incremental_push_tag_prefix"),
    _field("isFederated", FieldKind.BOOLEAN, "is_federated"),
    _field("isFrozen", FieldKind.BOOLEAN, "is_frozen"),
    _field("mailingLists", FieldKind.STRING_LIST, "mailing_lists"),
    _field("maxActivityCommits", FieldKind.INTEGER, "max_activity_commits"),
    _field("mergeTo", FieldKind.STRING, "merge_to"),
    _field("metricAuthorExclusions", FieldKind.STRING_LIST, "metric_author_exclusions"),
    _field("owners", FieldKind.STRING_LIST, "owners"),
    _field("preReceiveScripts", FieldKind.STRING_LIST, "pre_receive_scripts"),
    _field("postReceiveScripts", FieldKind.STRING_LIST, "post_receive_scripts"),
    _field("requireApproval", FieldKind.BOOLEAN, "require_approval"),
    _field("showRemoteBranches", FieldKind.BOOLEAN, "show_remote_branches"),
    _field("skipSizeCalculation", FieldKind.BOOLEAN, "skip_size_calculation"),
    _field("skipSummaryMetrics", FieldKind.BOOLEAN, "skip_summary_metrics"),
    _field("useIncrementalPushTags", FieldKind.BOOLEAN, "use_incremental_push_tags"),
    _field("verifyCommitter", FieldKind.BOOLEAN, "verify_committer"),
)

_BY_NAME: dict[str, FieldDescriptor] = {f.name.lower(): f for f in FIELDS}


def field_names() -> list[str]:
    """All settable field names in table order."""
    return [f.name for f in FIELDS]


def lookup_field(name: str) -> FieldDescriptor:
    """
    Find a field by name, ignoring case.

    Raises:
        UnknownFieldError: If no field has that name
    """
    descriptor = _BY_NAME.get(name.lower())
    if descriptor is None:
        raise UnknownFieldError(name, field_names())
    return descriptor
