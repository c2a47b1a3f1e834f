"""Call Setup: builds per-call configuration and runs negotiation.

Invariants:
    - One PolicySnapshot per call attempt: filtering, config and negotiation agree
    - Servers are filtered BEFORE any engine is constructed
    - NoUsableServersError propagates (configuration fault, logged CRITICAL)
    - NegotiationError becomes a None result (ordinary "could not establish call")
    - Log files are handed to the signalling client before the engine starts

Design Decisions:
    - CallSetupContext is the explicit owner of process-wide policy state;
      nothing in core/ reads globals
    - Thin orchestration over pure core builders (impureim sandwich)
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path

from callsetup.config import Settings
from callsetup.core.call_config import (
    CallConfiguration,
    CodecToggles,
    apply_debug_options_to_state,
    build_call_options,
    resolve_audio_processing,
)
from callsetup.core.domain_types import (
    CallMetadata,
    CallNetworkType,
    CallProtocol,
    CallStateReady,
    Socks5Proxy,
)
from callsetup.core.engine_protocols import (
    ConnectionStateObserver,
    EngineInstance,
    SignallingClient,
)
from callsetup.core.engine_registry import EngineCandidateRegistry, build_call_protocol
from callsetup.core.errors import NegotiationError, NoUsableServersError
from callsetup.core.filter_servers import filter_call_servers
from callsetup.core.policy_flags import PlatformFloor, PolicyFlags, PolicySnapshot
from callsetup.infrastructure import server_config as keys
from callsetup.infrastructure.call_logs import (
    allocate_call_log_files,
    persistent_state_path,
)
from callsetup.infrastructure.server_config import ServerCallConfig
from callsetup.services.engine_loading import build_engine_registry
from callsetup.services.negotiator import EngineBuildArgs, Negotiator

logger = logging.getLogger(__name__)


@dataclass
class CallSetupContext:
    """Process-wide call-setup state, owned by the application."""
    settings: Settings
    policy: PolicyFlags
    registry: EngineCandidateRegistry
    server_config: ServerCallConfig

    def local_protocol(self) -> CallProtocol:
        return build_call_protocol(
            self.registry,
            self.settings.connection_min_layer,
            self.settings.connection_max_layer,
        )


def build_call_setup_context(settings: Settings) -> CallSetupContext:
    policy = PolicyFlags(PlatformFloor(
        legacy_version=settings.legacy_engine_version,
        level=settings.platform_level,
        min_level=settings.min_platform_level,
    ))
    return CallSetupContext(
        settings=settings,
        policy=policy,
        registry=build_engine_registry(settings, policy),
        server_config=ServerCallConfig(),
    )


class CallSetupService:
    """Turns a ready call into a running engine (or None)."""

    def __init__(self, context: CallSetupContext, signalling: SignallingClient):
        self._ctx = context
        self._signalling = signalling

    def prepare_state(
        self, call: CallMetadata, state: CallStateReady, snapshot: PolicySnapshot,
    ) -> CallStateReady:
        """Filtered servers + P2P debug override. Raises NoUsableServersError."""
        try:
            servers = filter_call_servers(state.servers, snapshot)
        except NoUsableServersError as e:
            e.context.call_id = call.id
            logger.critical(e.message, extra=e.log_extra())
            raise
        if servers is not state.servers:
            state = replace(state, servers=tuple(servers))
        return apply_debug_options_to_state(state, snapshot)

    def build_configuration(
        self,
        call: CallMetadata,
        state: CallStateReady,
        snapshot: PolicySnapshot,
        force_tcp: bool,
        proxy: Socks5Proxy | None,
    ) -> CallConfiguration:
        settings = self._ctx.settings
        server_config = self._ctx.server_config

        log_files = allocate_call_log_files(
            Path(settings.call_log_dir), settings.call_log_keep_count,
        )
        self._signalling.store_call_log_information(call, log_files)

        return CallConfiguration(
            state=state,
            is_outgoing=call.is_outgoing,
            persistent_state_file=persistent_state_path(settings.persistent_state_file),
            log_file=log_files.log_file if log_files else None,
            stats_log_file=log_files.stats_log_file if log_files else None,
            packet_timeout_ms=self._signalling.call_packet_timeout_ms(),
            connect_timeout_ms=self._signalling.call_connect_timeout_ms(),
            data_saving=self._signalling.effective_data_saving_mode(),
            force_tcp=force_tcp,
            proxy=proxy,
            processing=resolve_audio_processing(
                snapshot,
                prefer_system_aec=server_config.get_bool(keys.USE_SYSTEM_AEC, True),
                prefer_system_ns=server_config.get_bool(keys.USE_SYSTEM_NS, True),
            ),
            enable_stun_marking=server_config.get_bool(keys.ENABLE_STUN_MARKING, False),
            codecs=CodecToggles(
                enable_h264_encoder=server_config.get_bool(keys.ENABLE_H264_ENCODER, True),
                enable_h264_decoder=server_config.get_bool(keys.ENABLE_H264_DECODER, True),
                enable_h265_encoder=server_config.get_bool(keys.ENABLE_H265_ENCODER, True),
                enable_h265_decoder=server_config.get_bool(keys.ENABLE_H265_DECODER, True),
            ),
        )

    def instantiate_and_connect(
        self,
        call: CallMetadata,
        state_ready: CallStateReady,
        observer: ConnectionStateObserver,
        force_tcp: bool = False,
        proxy: Socks5Proxy | None = None,
        network_type: CallNetworkType = CallNetworkType.UNKNOWN,
        audio_gain_control_enabled: bool = True,
        echo_cancellation_strength: int = 1,
        is_mic_disabled: bool = False,
    ) -> EngineInstance | None:
        """Running engine for the call, or None when negotiation fails."""
        snapshot = self._ctx.policy.snapshot()
        state = self.prepare_state(call, state_ready, snapshot)
        configuration = self.build_configuration(
            call, state, snapshot, force_tcp, proxy,
        )
        options = build_call_options(
            snapshot,
            network_type=network_type,
            audio_gain_control_enabled=audio_gain_control_enabled,
            echo_cancellation_strength=echo_cancellation_strength,
            is_mic_disabled=is_mic_disabled,
        )

        negotiator = Negotiator(
            self._ctx.registry, snapshot, self._ctx.settings.force_direct_legacy,
        )
        try:
            return negotiator.negotiate(
                state.protocol.library_versions,
                EngineBuildArgs(
                    signalling=self._signalling,
                    call=call,
                    configuration=configuration,
                    options=options,
                    observer=observer,
                ),
            )
        except NegotiationError as e:
            logger.warning(
                f"Call {call.id} setup failed: {e.message}",
                extra={**e.log_extra(), "call_id": call.id},
            )
            return None
