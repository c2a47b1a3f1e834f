"""Error Hierarchy: typed, categorized exceptions for every call-setup failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Negotiation failures (NegotiationError) are per-call: the caller decides on retry
    - NoUsableServersError is a CONFIGURATION error, never a NegotiationError,
      so an emptied server list is distinguishable from "no compatible engine"
    - to_response() produces the REST envelope used by the debug surface

Design Decisions:
    - Single hierarchy with CallSetupError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries call_id / version for log extras
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NEGOTIATION = "negotiation"
    ENGINE = "engine"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    call_id: int | None = None
    library_name: str | None = None
    library_version: str | None = None
    debug_info: dict[str, Any] | None = None


class CallSetupError(Exception):
    """Base exception for all call-setup errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "call_id": self.context.call_id,
                    "library_name": self.context.library_name,
                    "library_version": self.context.library_version,
                },
            }
        }

    def log_extra(self) -> dict:
        """Fields for logging `extra=` (consumed by JSONFormatter)."""
        return {
            "error_code": self.code,
            "call_id": self.context.call_id,
            "library_name": self.context.library_name,
            "library_version": self.context.library_version,
        }


# ─── Configuration Errors ───────────────────────────────────────

class NoUsableServersError(CallSetupError):
    """Active server filtering removed every server."""
    def __init__(self, input_count: int, context: ErrorContext | None = None):
        super().__init__(
            f"Server filtering removed all {input_count} call server(s). "
            "Check the IPv4/TURN debug options.",
            "NO_USABLE_SERVERS", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 422,
        )
        self.input_count = input_count


class DuplicateLegacyEngineError(CallSetupError):
    """A second legacy engine candidate was registered."""
    def __init__(self, existing: str, rejected: str, context: ErrorContext | None = None):
        super().__init__(
            f"Legacy engine already registered ({existing}); refusing {rejected}",
            "DUPLICATE_LEGACY_ENGINE", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class EngineEntrypointError(CallSetupError):
    """An engine factory entrypoint could not be resolved."""
    def __init__(self, entrypoint: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid engine entrypoint '{entrypoint}': {reason}",
            "ENGINE_ENTRYPOINT_INVALID", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.entrypoint = entrypoint


# ─── Engine / Negotiation Errors ────────────────────────────────

class EngineConstructionError(CallSetupError):
    """Engine candidate could not be built. Recoverable: the scan continues."""
    def __init__(
        self, version: str, reason: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.library_version = ctx.library_version or version
        super().__init__(
            f"Engine for version {version} could not be constructed: {reason}",
            "ENGINE_CONSTRUCTION_FAILED", ErrorCategory.ENGINE,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.version = version


class NegotiationError(CallSetupError):
    """Base for failures that end one negotiation attempt."""


class NoCompatibleEngineError(NegotiationError):
    """Peer version list yielded no usable local engine."""
    def __init__(self, peer_versions: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"No compatible engine for peer versions {peer_versions}",
            "NO_COMPATIBLE_ENGINE", ErrorCategory.NEGOTIATION,
            ErrorSeverity.ERROR, context, 409,
        )
        self.peer_versions = peer_versions


class EngineInitializationError(NegotiationError):
    """Chosen engine failed initialize_and_connect(); it has been destroyed."""
    def __init__(
        self, library_name: str, library_version: str,
        reason: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.library_name = library_name
        ctx.library_version = library_version
        super().__init__(
            f"{library_name} {library_version} initialization failed: {reason}",
            "ENGINE_INITIALIZATION_FAILED", ErrorCategory.ENGINE,
            ErrorSeverity.ERROR, ctx, 500,
        )


class IllegalNegotiationTransitionError(CallSetupError):
    """Negotiator state machine was driven out of order."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal negotiation transition {current} -> {target}",
            "ILLEGAL_NEGOTIATION_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.current = current
        self.target = target


# ─── Debug Surface Errors ───────────────────────────────────────

class DebugSurfaceDisabledError(CallSetupError):
    """Debug control surface requested while disabled in settings."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Debug control surface is disabled",
            "DEBUG_SURFACE_DISABLED", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class UnknownDebugOptionError(CallSetupError):
    """Debug option name does not match any DebugOption member."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unknown debug option '{name}'",
            "UNKNOWN_DEBUG_OPTION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 404,
        )
        self.name = name


# ─── Request / Internal Errors ──────────────────────────────────

class InvalidRequestError(CallSetupError):
    """Debug-surface request body or parameters failed validation."""
    def __init__(self, details: list[dict[str, str]], context: ErrorContext | None = None):
        super().__init__(
            f"Invalid call-setup request ({len(details)} field error(s))",
            "INVALID_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.details = details

    @classmethod
    def from_validation_errors(cls, errors) -> "InvalidRequestError":
        return cls([
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in errors
        ])

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = self.details
        return response


class UnexpectedCallSetupError(CallSetupError):
    """Anything that escaped the typed hierarchy. Exception text stays in logs only."""
    def __init__(self, cause: BaseException, context: ErrorContext | None = None):
        context = context or ErrorContext()
        context.debug_info = {"exception_type": type(cause).__name__}
        super().__init__(
            "Call setup service failed unexpectedly",
            "CALL_SETUP_INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
