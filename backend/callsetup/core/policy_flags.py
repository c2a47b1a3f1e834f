"""Policy Flags: debug option bitmask and force-disabled engine versions.

Invariants:
    - is_option_enabled(mask) is True iff EVERY bit in mask is set
    - is_force_disabled = manual force-disable OR platform floor; the two are
      separate predicates and never overwrite each other
    - Below the platform floor only the legacy version stays enabled
    - set_force_disabled(v, True) then (v, False) restores the prior answer for v
    - All reads/writes of PolicyFlags go through one RLock; snapshots are immutable

Design Decisions:
    - Injected context object over module globals: negotiation and filtering are
      deterministic given a PolicySnapshot
    - IntFlag for debug options: bit values stay stable for external toggles
"""

import threading
from dataclasses import dataclass
from enum import IntFlag
from typing import Protocol


class DebugOption(IntFlag):
    """Developer/testing toggles. Values are stable bit positions."""
    DISABLE_ACOUSTIC_ECHO_CANCELLATION = 1
    DISABLE_NOISE_SUPPRESSOR = 1 << 1
    DISABLE_AUTOMATIC_GAIN_CONTROL = 1 << 2
    DISABLE_P2P = 1 << 3
    DISABLE_IPV4 = 1 << 4
    IGNORE_TURN_SERVERS = 1 << 5
    IGNORE_NON_TURN_SERVERS = 1 << 6


NO_OPTIONS = DebugOption(0)

# Any of these turns server filtering on
SERVER_FILTER_OPTIONS = (
    DebugOption.DISABLE_IPV4
    | DebugOption.IGNORE_TURN_SERVERS
    | DebugOption.IGNORE_NON_TURN_SERVERS
)

DEBUG_OPTION_LABELS: dict[DebugOption, str] = {
    DebugOption.DISABLE_ACOUSTIC_ECHO_CANCELLATION: "Disable AEC",
    DebugOption.DISABLE_NOISE_SUPPRESSOR: "Disable NS",
    DebugOption.DISABLE_AUTOMATIC_GAIN_CONTROL: "Disable AGC",
    DebugOption.DISABLE_IPV4: "Disable ipv4",
    DebugOption.IGNORE_TURN_SERVERS: "Exclude TURN servers & fail if none remaining",
    DebugOption.IGNORE_NON_TURN_SERVERS: "Exclude non-TURN servers & fail if none remaining",
    DebugOption.DISABLE_P2P: "Disable P2P",
}


class OptionView(Protocol):
    """Anything answering debug-option queries (PolicyFlags or PolicySnapshot)."""
    def is_option_enabled(self, mask: DebugOption) -> bool: ...


def all_debug_options() -> list[DebugOption]:
    """Options in display order for a developer menu."""
    return list(DEBUG_OPTION_LABELS)


def debug_option_from_name(name: str) -> DebugOption | None:
    """Case-insensitive lookup by member name ("disable_ipv4")."""
    return DebugOption.__members__.get(name.upper())


@dataclass(frozen=True)
class PlatformFloor:
    """Platform capability floor: below min_level only the legacy engine runs.

    level=None means the platform level is unknown and the floor never applies.
    """
    legacy_version: str
    level: int | None = None
    min_level: int = 0

    @property
    def is_below(self) -> bool:
        return self.level is not None and self.level < self.min_level

    def excludes(self, version: str) -> bool:
        return self.is_below and version != self.legacy_version


@dataclass(frozen=True)
class PolicySnapshot:
    """Immutable view of PolicyFlags taken at one instant."""
    options: DebugOption
    force_disabled: frozenset[str]
    floor: PlatformFloor

    def is_option_enabled(self, mask: DebugOption) -> bool:
        return (self.options & mask) == mask

    def is_manually_force_disabled(self, version: str) -> bool:
        return version in self.force_disabled

    def is_below_platform_floor(self, version: str) -> bool:
        return self.floor.excludes(version)

    def is_force_disabled(self, version: str) -> bool:
        return (
            self.is_manually_force_disabled(version)
            or self.is_below_platform_floor(version)
        )


class PolicyFlags:
    """Thread-safe, process-lifetime policy context."""

    def __init__(self, floor: PlatformFloor):
        self._lock = threading.RLock()
        self._floor = floor
        self._options = NO_OPTIONS
        self._force_disabled: set[str] = set()

    @property
    def floor(self) -> PlatformFloor:
        return self._floor

    # --- force-disabled versions ---------------------------------------------

    def set_force_disabled(self, version: str, disabled: bool) -> None:
        with self._lock:
            if disabled:
                self._force_disabled.add(version)
            else:
                self._force_disabled.discard(version)

    def is_manually_force_disabled(self, version: str) -> bool:
        with self._lock:
            return version in self._force_disabled

    def is_below_platform_floor(self, version: str) -> bool:
        return self._floor.excludes(version)

    def is_force_disabled(self, version: str) -> bool:
        return (
            self.is_manually_force_disabled(version)
            or self.is_below_platform_floor(version)
        )

    def force_disabled_versions(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._force_disabled)

    # --- debug options --------------------------------------------------------

    def set_option(self, option: DebugOption, enabled: bool) -> None:
        with self._lock:
            if enabled:
                self._options |= option
            else:
                self._options &= ~option

    def is_option_enabled(self, mask: DebugOption) -> bool:
        with self._lock:
            return (self._options & mask) == mask

    def enabled_options(self) -> DebugOption:
        with self._lock:
            return self._options

    # --- snapshots ------------------------------------------------------------

    def snapshot(self) -> PolicySnapshot:
        with self._lock:
            return PolicySnapshot(
                options=self._options,
                force_disabled=frozenset(self._force_disabled),
                floor=self._floor,
            )
