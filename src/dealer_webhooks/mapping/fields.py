"""System fields and field-mapping variants.

A mapping binds one closed-set :class:`SystemField` to where its value comes
from. Three variants exist and they are structurally distinct:

- :class:`PathMapping` reads a source path from the payload and may decorate
  the result with a prefix/suffix;
- :class:`FixedPlanMapping` always commits a configured plan id;
- :class:`FixedStatusMapping` always commits a configured account status.

``plan`` and ``status`` can only be expressed by their fixed variant, so a
"path" stored for status cannot be constructed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TypeAlias

from dealer_webhooks.errors.definitions import (
    ErrDecorationNotAllowed,
    ErrEmptySourcePath,
    ErrFixedValueRequired,
    ErrInvalidSystemField,
)
from dealer_webhooks.errors.hook_errors import UnknownPlanOrStatusError


class FieldCategory(enum.StrEnum):
    """Which domain record a system field lands on."""

    USER = "user"
    ACCOUNT = "account"


class SystemField(enum.StrEnum):
    """Closed set of fields an endpoint can populate."""

    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    CPF_CNPJ = "cpfCnpj"
    PLAN = "plan"
    OFFER = "offer"
    QUANTITY = "quantity"
    STATUS = "status"

    @property
    def category(self) -> FieldCategory:
        return _FIELD_INFO[self][0]

    @property
    def label(self) -> str:
        return _FIELD_INFO[self][1]

    @property
    def description(self) -> str:
        return _FIELD_INFO[self][2]

    @property
    def is_fixed(self) -> bool:
        """Whether the field takes a fixed value instead of a source path."""
        return self in (SystemField.PLAN, SystemField.STATUS)

    @classmethod
    def parse(cls, value: str) -> SystemField:
        """Look up a system field by its wire value.

        Raises:
            HookError: If *value* is not a known system field.
        """
        try:
            return cls(value)
        except ValueError:
            raise ErrInvalidSystemField from None


_FIELD_INFO: dict[SystemField, tuple[FieldCategory, str, str]] = {
    SystemField.NAME: (FieldCategory.USER, "Name", "User's full name"),
    SystemField.EMAIL: (FieldCategory.USER, "Email", "User's email (required)"),
    SystemField.PHONE: (FieldCategory.USER, "Phone", "User's phone number"),
    SystemField.CPF_CNPJ: (FieldCategory.USER, "CPF/CNPJ", "CPF or CNPJ, digits only"),
    SystemField.PLAN: (FieldCategory.ACCOUNT, "Plan", "Base product, chosen from the plan catalog"),
    SystemField.OFFER: (
        FieldCategory.ACCOUNT,
        "Offer",
        "Recurrence (monthly, P3M, interval + interval_count, ...), detected automatically",
    ),
    SystemField.QUANTITY: (
        FieldCategory.ACCOUNT,
        "Quantity",
        "Number of recurrence periods, defaults to 1",
    ),
    SystemField.STATUS: (
        FieldCategory.ACCOUNT,
        "Status",
        "Account status, active or vencido (never read from the payload)",
    ),
}


class AccountStatus(enum.StrEnum):
    """Account status values a status mapping may fix."""

    ACTIVE = "active"
    VENCIDO = "vencido"

    @property
    def label(self) -> str:
        return "Expired" if self is AccountStatus.VENCIDO else "Active"

    @classmethod
    def parse(cls, value: str) -> AccountStatus:
        """Look up a status by value.

        Raises:
            UnknownPlanOrStatusError: If *value* is not a valid status.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnknownPlanOrStatusError(f"unknown account status: {value!r}") from None


class MappingKind(enum.StrEnum):
    """Discriminator persisted alongside each mapping row."""

    PATH = "path"
    PLAN = "plan"
    STATUS = "status"


def _clean(decoration: str | None) -> str | None:
    return decoration if decoration else None


@dataclass(frozen=True)
class PathMapping:
    """Generic mapping: read *source_path* from the payload."""

    system_field: SystemField
    source_path: str
    prefix: str | None = None
    suffix: str | None = None
    kind: MappingKind = field(default=MappingKind.PATH, init=False)

    def __post_init__(self) -> None:
        if self.system_field.is_fixed:
            raise ErrFixedValueRequired
        if not self.source_path.strip():
            raise ErrEmptySourcePath
        object.__setattr__(self, "prefix", _clean(self.prefix))
        object.__setattr__(self, "suffix", _clean(self.suffix))

    def decorate(self, value: str) -> str:
        """Apply prefix and suffix to a resolved value."""
        return f"{self.prefix or ''}{value}{self.suffix or ''}"


@dataclass(frozen=True)
class FixedPlanMapping:
    """Plan mapping: commit *plan_id* without reading the payload."""

    plan_id: str
    system_field: SystemField = field(default=SystemField.PLAN, init=False)
    kind: MappingKind = field(default=MappingKind.PLAN, init=False)

    def __post_init__(self) -> None:
        if not self.plan_id.strip():
            raise UnknownPlanOrStatusError("plan id must not be empty")


@dataclass(frozen=True)
class FixedStatusMapping:
    """Status mapping: commit *status* without reading the payload."""

    status: AccountStatus
    system_field: SystemField = field(default=SystemField.STATUS, init=False)
    kind: MappingKind = field(default=MappingKind.STATUS, init=False)


FieldMapping: TypeAlias = PathMapping | FixedPlanMapping | FixedStatusMapping


def build_mapping(
    system_field: SystemField | str,
    value: str,
    *,
    prefix: str | None = None,
    suffix: str | None = None,
) -> FieldMapping:
    """Build the right mapping variant for *system_field*.

    For ``plan`` *value* is a plan id, for ``status`` a status value, and for
    every other field a source path. Plan existence is checked by the caller
    against the plan catalog.

    Raises:
        HookError: If the field is unknown, a decoration is given for a fixed
            field, the status is invalid or the path is empty.
    """
    field_ = SystemField.parse(system_field)
    if field_.is_fixed and (prefix or suffix):
        raise ErrDecorationNotAllowed
    if field_ is SystemField.PLAN:
        return FixedPlanMapping(value.strip())
    if field_ is SystemField.STATUS:
        return FixedStatusMapping(AccountStatus.parse(value))
    return PathMapping(field_, value.strip(), prefix, suffix)
