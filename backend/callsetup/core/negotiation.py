"""Negotiation Rules: pure candidate choice and the per-attempt state machine.

Invariants:
    - All functions are PURE: no engine construction, no IO
    - Peer order is the only tie-break: the first peer version with a candidate wins
    - Blank peer entries are skipped
    - Legacy is chosen for the legacy version when force_direct_legacy is set,
      when no pluggable engine exists for it, or when it is force-disabled
    - A force-disabled version with no legacy match yields no candidate
    - State transitions follow NEGOTIATION_TRANSITIONS; RUNNING/FAILED are terminal

Design Decisions:
    - choose_candidate returns the candidate (not an engine): construction
      belongs to the shell (services/negotiator.py)
"""

from collections.abc import Iterable, Iterator

from callsetup.core.domain_types import NegotiationState
from callsetup.core.engine_registry import EngineCandidate, EngineCandidateRegistry
from callsetup.core.errors import IllegalNegotiationTransitionError
from callsetup.core.policy_flags import PolicySnapshot

NEGOTIATION_TRANSITIONS: dict[NegotiationState, frozenset[NegotiationState]] = {
    NegotiationState.IDLE: frozenset({NegotiationState.SCANNING}),
    NegotiationState.SCANNING: frozenset({
        NegotiationState.CANDIDATE_CHOSEN, NegotiationState.NO_MATCH,
    }),
    NegotiationState.CANDIDATE_CHOSEN: frozenset({NegotiationState.STARTING}),
    NegotiationState.STARTING: frozenset({
        NegotiationState.RUNNING, NegotiationState.ROLLING_BACK,
    }),
    NegotiationState.ROLLING_BACK: frozenset({NegotiationState.FAILED}),
    NegotiationState.NO_MATCH: frozenset({NegotiationState.FAILED}),
    NegotiationState.RUNNING: frozenset(),
    NegotiationState.FAILED: frozenset(),
}


def check_transition(
    current: NegotiationState, target: NegotiationState,
) -> NegotiationState:
    """Return target if the move is legal, raise otherwise."""
    if target not in NEGOTIATION_TRANSITIONS[current]:
        raise IllegalNegotiationTransitionError(current.value, target.value)
    return target


def iter_peer_versions(peer_versions: Iterable[str]) -> Iterator[str]:
    """Peer versions in order, blank entries dropped."""
    for version in peer_versions:
        if version and version.strip():
            yield version


def choose_candidate(
    version: str,
    registry: EngineCandidateRegistry,
    policy: PolicySnapshot,
    force_direct_legacy: bool = False,
) -> EngineCandidate | None:
    """Candidate able to serve one peer version, or None."""
    if version == registry.legacy_version and (
        force_direct_legacy
        or not registry.has_pluggable(version)
        or policy.is_force_disabled(version)
    ):
        return registry.legacy
    if policy.is_force_disabled(version):
        return None
    return registry.pluggable_candidate(version)
