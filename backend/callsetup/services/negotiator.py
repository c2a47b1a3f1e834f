"""Negotiator: picks, builds and starts exactly one engine for a call attempt.

Invariants:
    - One Negotiator per call attempt; negotiate() runs at most once
    - At most one engine is constructed at a time; the first successful one wins
    - Construction failures are recorded as ConstructionAttempt values and the
      scan continues with the next peer version
    - If initialize_and_connect() raises ANYTHING, perform_destroy() runs exactly
      once before the failure surfaces; no partially started engine is returned
    - The policy is snapshotted once per negotiation: every check sees one view

Design Decisions:
    - Explicit result values for construction (ConstructionAttempt) instead of
      exceptions flowing through the scan loop
    - A destroy() failure during rollback is logged, the original failure still wins
    - No retry loop: retry policy belongs to the caller (services/call_setup.py)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from callsetup.core.call_config import CallConfiguration, CallOptions
from callsetup.core.domain_types import CallMetadata, EngineKind, NegotiationState
from callsetup.core.engine_protocols import (
    ConnectionStateObserver,
    EngineInstance,
    SignallingClient,
)
from callsetup.core.engine_registry import EngineCandidate, EngineCandidateRegistry
from callsetup.core.errors import (
    EngineConstructionError,
    EngineInitializationError,
    ErrorContext,
    NoCompatibleEngineError,
)
from callsetup.core.negotiation import (
    check_transition,
    choose_candidate,
    iter_peer_versions,
)
from callsetup.core.policy_flags import PolicyFlags, PolicySnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineBuildArgs:
    """Everything an EngineFactory receives besides the version."""
    signalling: SignallingClient
    call: CallMetadata
    configuration: CallConfiguration
    options: CallOptions
    observer: ConnectionStateObserver


@dataclass(frozen=True)
class ConstructionAttempt:
    """Outcome of building one candidate: an engine OR an error."""
    version: str
    kind: EngineKind
    engine: EngineInstance | None = None
    error: EngineConstructionError | None = None

    @property
    def succeeded(self) -> bool:
        return self.engine is not None


def try_construct(
    candidate: EngineCandidate, version: str, args: EngineBuildArgs,
) -> ConstructionAttempt:
    """Build candidate for version. Never raises for ordinary exceptions."""
    try:
        engine = candidate.factory(
            args.signalling,
            args.call,
            args.configuration,
            args.options,
            args.observer,
            version,
        )
    except EngineConstructionError as e:
        return ConstructionAttempt(version, candidate.kind, error=e)
    except Exception as e:
        return ConstructionAttempt(
            version, candidate.kind,
            error=EngineConstructionError(
                version, f"{type(e).__name__}: {e}",
                ErrorContext(call_id=args.call.id, library_name=candidate.name),
            ),
        )
    return ConstructionAttempt(version, candidate.kind, engine=engine)


class Negotiator:
    """Per-call-attempt negotiation state machine."""

    def __init__(
        self,
        registry: EngineCandidateRegistry,
        policy: PolicyFlags | PolicySnapshot,
        force_direct_legacy: bool = False,
    ):
        self._registry = registry
        self._policy = policy
        self._force_direct_legacy = force_direct_legacy
        self.state = NegotiationState.IDLE
        self.attempts: list[ConstructionAttempt] = []
        self.selected: ConstructionAttempt | None = None

    def negotiate(
        self, peer_versions: Iterable[str], args: EngineBuildArgs,
    ) -> EngineInstance:
        """Return a running engine or raise a NegotiationError."""
        self._advance(NegotiationState.SCANNING)
        peer_versions = list(peer_versions)
        snapshot = self._snapshot()

        selected = self._scan(peer_versions, args, snapshot)
        if selected is None:
            self._advance(NegotiationState.NO_MATCH)
            self._advance(NegotiationState.FAILED)
            error = NoCompatibleEngineError(
                peer_versions, ErrorContext(call_id=args.call.id),
            )
            logger.warning(
                f"No compatible engine: peer={peer_versions} "
                f"local={list(self._registry.available_versions(False, snapshot))}",
                extra=error.log_extra(),
            )
            raise error

        self.selected = selected
        self._advance(NegotiationState.CANDIDATE_CHOSEN)
        return self._start(selected.engine, args)

    # --- scanning ---------------------------------------------------------------

    def _scan(
        self,
        peer_versions: list[str],
        args: EngineBuildArgs,
        snapshot: PolicySnapshot,
    ) -> ConstructionAttempt | None:
        for version in iter_peer_versions(peer_versions):
            candidate = choose_candidate(
                version, self._registry, snapshot, self._force_direct_legacy,
            )
            if candidate is None:
                continue
            attempt = try_construct(candidate, version, args)
            self.attempts.append(attempt)
            if attempt.succeeded:
                logger.info(
                    f"Selected {candidate.kind.value} engine {candidate.name} {version}",
                    extra={
                        "call_id": args.call.id,
                        "library_name": candidate.name,
                        "peer_version": version,
                        "attempt": len(self.attempts),
                    },
                )
                return attempt
            logger.info(
                f"Unknown engine version {version}: {attempt.error.message}",
                extra={**attempt.error.log_extra(), "peer_version": version},
            )
        return None

    # --- starting / rollback -----------------------------------------------------

    def _start(
        self, engine: EngineInstance, args: EngineBuildArgs,
    ) -> EngineInstance:
        self._advance(NegotiationState.STARTING)
        try:
            engine.initialize_and_connect()
        except Exception as e:
            error = EngineInitializationError(
                engine.library_name, engine.library_version, str(e),
                ErrorContext(call_id=args.call.id),
            )
            logger.error(
                f"{engine.library_name} {engine.library_version} initialization failed",
                exc_info=True,
                extra=error.log_extra(),
            )
            self._roll_back(engine)
            raise error from e
        except BaseException:
            self._roll_back(engine)
            raise
        self._advance(NegotiationState.RUNNING)
        return engine

    def _roll_back(self, engine: EngineInstance) -> None:
        """Release a failed engine. Always ends in FAILED."""
        self._advance(NegotiationState.ROLLING_BACK)
        try:
            engine.perform_destroy()
        except Exception:
            logger.exception(
                f"{engine.library_name} {engine.library_version} destroy failed "
                "during rollback",
                extra={
                    "library_name": engine.library_name,
                    "library_version": engine.library_version,
                },
            )
        finally:
            self._advance(NegotiationState.FAILED)

    # --- helpers -----------------------------------------------------------------

    def _advance(self, target: NegotiationState) -> None:
        self.state = check_transition(self.state, target)

    def _snapshot(self) -> PolicySnapshot:
        if isinstance(self._policy, PolicyFlags):
            return self._policy.snapshot()
        return self._policy
