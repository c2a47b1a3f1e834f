"""Engine Candidate Registry: which engine implementations exist locally, by version.

Invariants:
    - Exactly one legacy candidate, fixed at construction; a second is rejected
    - available_versions(): legacy first, then pluggable in registration order,
      duplicates collapsed
    - Filtering never yields an empty answer: falls back to (legacy_version,)
    - pluggable_versions() is NEVER filtered: negotiation applies force-disable itself

Design Decisions:
    - Policy injected at construction, not read from ambient state
    - Local protocol advertisement lives here: it is a pure projection of the registry
"""

from dataclasses import dataclass

from callsetup.core.domain_types import CallProtocol, EngineKind
from callsetup.core.engine_protocols import EngineFactory
from callsetup.core.errors import DuplicateLegacyEngineError
from callsetup.core.policy_flags import PolicyFlags, PolicySnapshot


@dataclass(frozen=True)
class EngineCandidate:
    """A locally buildable engine implementation for one version."""
    name: str
    version: str
    factory: EngineFactory
    is_legacy: bool = False

    @property
    def kind(self) -> EngineKind:
        return EngineKind.LEGACY if self.is_legacy else EngineKind.PLUGGABLE


class EngineCandidateRegistry:
    """Registry of the legacy engine plus pluggable engines."""

    def __init__(
        self,
        legacy: EngineCandidate,
        policy: PolicyFlags | PolicySnapshot,
        pluggable: list[EngineCandidate] | None = None,
    ):
        if not legacy.is_legacy:
            raise ValueError(f"{legacy.name} is not marked as legacy")
        self._legacy = legacy
        self._policy = policy
        self._pluggable: dict[str, EngineCandidate] = {}
        for candidate in pluggable or []:
            self.register(candidate)

    @property
    def legacy(self) -> EngineCandidate:
        return self._legacy

    @property
    def legacy_version(self) -> str:
        return self._legacy.version

    def register(self, candidate: EngineCandidate) -> None:
        """Add a pluggable candidate. Re-registering a version replaces it in place."""
        if candidate.is_legacy:
            raise DuplicateLegacyEngineError(self._legacy.name, candidate.name)
        self._pluggable[candidate.version] = candidate

    def pluggable_versions(self) -> tuple[str, ...]:
        return tuple(self._pluggable)

    def pluggable_candidate(self, version: str) -> EngineCandidate | None:
        return self._pluggable.get(version)

    def has_pluggable(self, version: str) -> bool:
        return version in self._pluggable

    def available_versions(
        self,
        apply_force_disable_filter: bool,
        policy: PolicyFlags | PolicySnapshot | None = None,
    ) -> tuple[str, ...]:
        """Locally usable versions, legacy first. Never empty."""
        if policy is None:
            policy = self._policy
        versions: dict[str, None] = {}
        for version in (self.legacy_version, *self._pluggable):
            if apply_force_disable_filter and policy.is_force_disabled(version):
                continue
            versions.setdefault(version)
        if not versions:
            return (self.legacy_version,)
        return tuple(versions)


def build_call_protocol(
    registry: EngineCandidateRegistry, min_layer: int, max_layer: int,
) -> CallProtocol:
    """Protocol we advertise for outgoing calls and when accepting."""
    return CallProtocol(
        udp_p2p=True,
        udp_reflector=True,
        min_layer=min_layer,
        max_layer=max_layer,
        library_versions=registry.available_versions(True),
    )
