"""Call Configuration: the immutable and mutable parameter structs handed to an engine.

Invariants:
    - CallConfiguration is frozen: built once per call attempt, never mutated
    - CallOptions is mutable and owned by the call session; engines only read it
    - echo_cancellation_strength is bounded 0-3
    - Debug options (AEC/NS/AGC/P2P) are folded in at build time, not read by engines

Design Decisions:
    - Frozen dataclass for configuration: accidental mutation raises immediately
    - Builder functions are pure; the caller supplies server-config values
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from callsetup.core.domain_types import (
    CallNetworkType,
    CallStateReady,
    DataSavingMode,
    Socks5Proxy,
)
from callsetup.core.policy_flags import DebugOption, OptionView

MAX_ECHO_CANCELLATION_STRENGTH = 3


@dataclass(frozen=True)
class CallLogFiles:
    log_file: Path
    stats_log_file: Path


@dataclass(frozen=True)
class CodecToggles:
    enable_h264_encoder: bool = True
    enable_h264_decoder: bool = True
    enable_h265_encoder: bool = True
    enable_h265_decoder: bool = True


@dataclass(frozen=True)
class AudioProcessing:
    prefer_system_echo_canceller: bool = True
    prefer_system_noise_suppressor: bool = True
    enable_noise_suppressor: bool = True


@dataclass(frozen=True)
class CallConfiguration:
    """Parameters that do not change during the call."""
    state: CallStateReady
    is_outgoing: bool

    persistent_state_file: Path
    log_file: Path | None
    stats_log_file: Path | None

    packet_timeout_ms: int
    connect_timeout_ms: int
    data_saving: DataSavingMode
    force_tcp: bool
    proxy: Socks5Proxy | None

    processing: AudioProcessing = field(default_factory=AudioProcessing)
    enable_stun_marking: bool = False
    codecs: CodecToggles = field(default_factory=CodecToggles)


@dataclass
class CallOptions:
    """Parameters that may change while the call is active."""
    network_type: CallNetworkType = CallNetworkType.UNKNOWN
    audio_gain_control_enabled: bool = True
    echo_cancellation_strength: int = 1
    is_mic_disabled: bool = False

    def __post_init__(self) -> None:
        self.echo_cancellation_strength = clamp_echo_strength(
            self.echo_cancellation_strength,
        )

    def update(self, **changes) -> None:
        """Apply changes in place (the session hands these to the live engine)."""
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise AttributeError(f"CallOptions has no field(s) {sorted(unknown)}")
        for name, value in changes.items():
            setattr(self, name, value)
        self.echo_cancellation_strength = clamp_echo_strength(
            self.echo_cancellation_strength,
        )


def clamp_echo_strength(strength: int) -> int:
    return max(0, min(MAX_ECHO_CANCELLATION_STRENGTH, strength))


def apply_debug_options_to_state(
    state: CallStateReady, policy: OptionView,
) -> CallStateReady:
    """DISABLE_P2P forces relay-only routing."""
    if policy.is_option_enabled(DebugOption.DISABLE_P2P) and state.allow_p2p:
        return replace(state, allow_p2p=False)
    return state


def build_call_options(
    policy: OptionView,
    network_type: CallNetworkType,
    audio_gain_control_enabled: bool,
    echo_cancellation_strength: int,
    is_mic_disabled: bool,
) -> CallOptions:
    """CallOptions with DISABLE_AUTOMATIC_GAIN_CONTROL / DISABLE_AEC applied."""
    if policy.is_option_enabled(DebugOption.DISABLE_AUTOMATIC_GAIN_CONTROL):
        audio_gain_control_enabled = False
    if policy.is_option_enabled(DebugOption.DISABLE_ACOUSTIC_ECHO_CANCELLATION):
        echo_cancellation_strength = 0
    return CallOptions(
        network_type=network_type,
        audio_gain_control_enabled=audio_gain_control_enabled,
        echo_cancellation_strength=echo_cancellation_strength,
        is_mic_disabled=is_mic_disabled,
    )


def resolve_audio_processing(
    policy: OptionView,
    prefer_system_aec: bool,
    prefer_system_ns: bool,
) -> AudioProcessing:
    """Debug-disabled AEC/NS also turn off the platform implementations."""
    disable_aec = policy.is_option_enabled(
        DebugOption.DISABLE_ACOUSTIC_ECHO_CANCELLATION,
    )
    disable_ns = policy.is_option_enabled(DebugOption.DISABLE_NOISE_SUPPRESSOR)
    return AudioProcessing(
        prefer_system_echo_canceller=prefer_system_aec and not disable_aec,
        prefer_system_noise_suppressor=prefer_system_ns and not disable_ns,
        enable_noise_suppressor=not disable_ns,
    )
