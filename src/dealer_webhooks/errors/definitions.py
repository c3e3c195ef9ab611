"""Pre-defined error instances raised by services and routes."""

from __future__ import annotations

from dealer_webhooks.errors.hook_errors import (
    HookError,
    MalformedPayloadError,
    MissingRequiredMappingError,
)

# -- Authentication --------------------------------------------------------

ErrUnauthorized = HookError(
    "admin token missing or invalid",
    status_code=401,
    code="unauthorized",
)
ErrEngineUnavailable = HookError(
    "webhook engine is not running",
    status_code=503,
    code="engine-unavailable",
)

# -- Not Found -------------------------------------------------------------

ErrEndpointNotFound = HookError(
    "webhook endpoint not found",
    status_code=404,
    code="endpoint-not-found",
)
ErrLogEntryNotFound = HookError(
    "webhook log entry not found",
    status_code=404,
    code="log-not-found",
)
ErrNoStoredPayload = HookError(
    "no stored payload for this endpoint; send a request in test mode first",
    status_code=404,
    code="no-stored-payload",
)

# -- Endpoint state --------------------------------------------------------

ErrEndpointNameRequired = HookError(
    "endpoint name must not be empty",
    status_code=400,
    code="endpoint-name-required",
)
ErrEndpointInactive = HookError(
    "webhook endpoint is not active",
    status_code=409,
    code="endpoint-inactive",
)
ErrEndpointNotInTestMode = HookError(
    "webhook endpoint is not in test mode",
    status_code=400,
    code="endpoint-not-in-test-mode",
)
ErrActivationRequiresEmail = HookError(
    "configure the email mapping before activating the endpoint",
    status_code=409,
    code="activation-requires-email",
)

# -- Mapping validation ----------------------------------------------------

ErrInvalidSystemField = HookError(
    "unknown system field",
    status_code=400,
    code="invalid-system-field",
)
ErrEmptySourcePath = HookError(
    "source path must not be empty",
    status_code=400,
    code="empty-source-path",
)
ErrDecorationNotAllowed = HookError(
    "prefix and suffix are only allowed on path mappings",
    status_code=400,
    code="decoration-not-allowed",
)
ErrFixedValueRequired = HookError(
    "plan and status take a fixed value, not a source path",
    status_code=400,
    code="fixed-value-required",
)

# -- Processing ------------------------------------------------------------

ErrMalformedPayload = MalformedPayloadError()
ErrMissingEmail = MissingRequiredMappingError()
ErrEmailMappingRequired = MissingRequiredMappingError(
    "configure the email mapping before reprocessing"
)
ErrProcessingFailed = HookError(
    "failed to process webhook",
    status_code=500,
    code="processing-failed",
)

# -- Log store -------------------------------------------------------------

ErrInvalidLogStatus = HookError(
    "log status filter must be one of pending, success, error",
    status_code=400,
    code="invalid-log-status",
)
ErrOutcomeAlreadyRecorded = HookError(
    "log entry outcome has already been recorded",
    status_code=409,
    code="outcome-already-recorded",
)
