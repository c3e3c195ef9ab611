"""Field mapping engine — system fields, mapping variants and the apply stage."""

from dealer_webhooks.mapping.apply import CommitOutcome, CommitStage, ResolvedFields, resolve_fields
from dealer_webhooks.mapping.contracts import (
    AccountStore,
    AccountUpsert,
    CommitAction,
    CommitResult,
    PlanCatalog,
    PlanInfo,
)
from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FieldCategory,
    FieldMapping,
    FixedPlanMapping,
    FixedStatusMapping,
    MappingKind,
    PathMapping,
    SystemField,
    build_mapping,
)

__all__ = [
    "AccountStatus",
    "AccountStore",
    "AccountUpsert",
    "CommitAction",
    "CommitOutcome",
    "CommitResult",
    "CommitStage",
    "FieldCategory",
    "FieldMapping",
    "FixedPlanMapping",
    "FixedStatusMapping",
    "MappingKind",
    "PathMapping",
    "PlanCatalog",
    "PlanInfo",
    "ResolvedFields",
    "SystemField",
    "build_mapping",
    "resolve_fields",
]
