"""Call Setup Service: filtering, configuration and negotiation end to end.

Tests cover:
    - Successful setup returns a running engine built with filtered servers
    - Log files allocated and handed to signalling before negotiation
    - Server call config and debug options flow into configuration/options
    - NoUsableServersError propagates; negotiation failures become None
"""

import pytest

from callsetup.config import Settings
from callsetup.core.domain_types import CallNetworkType
from callsetup.core.errors import NoUsableServersError
from callsetup.core.policy_flags import DebugOption
from callsetup.infrastructure.server_config import ServerCallConfig
from callsetup.services.call_setup import (
    CallSetupContext,
    CallSetupService,
    build_call_setup_context,
)

from tests.services.fake_engines import (
    LEGACY_VERSION,
    EngineShop,
    FakeSignalling,
    RecordingObserver,
    make_call,
    make_policy,
    make_registry,
    make_state_ready,
    reflector,
    relay,
)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        call_log_dir=str(tmp_path / "calls"),
        persistent_state_file=str(tmp_path / "state" / "voip.json"),
    )


@pytest.fixture
def shop():
    return EngineShop()


@pytest.fixture
def context(settings, shop):
    policy = make_policy()
    return CallSetupContext(
        settings=settings,
        policy=policy,
        registry=make_registry(shop, policy, ["7.0.0"]),
        server_config=ServerCallConfig(),
    )


@pytest.fixture
def signalling():
    return FakeSignalling(packet_timeout_ms=5_000, connect_timeout_ms=20_000)


def _connect(context, signalling, state, **kwargs):
    service = CallSetupService(context, signalling)
    return service.instantiate_and_connect(
        make_call(), state, RecordingObserver(), **kwargs,
    )


def test_successful_setup_returns_running_engine(context, signalling, shop):
    engine = _connect(context, signalling, make_state_ready(["7.0.0"]))

    assert engine is shop.built[0]
    assert engine.library_version == "7.0.0"
    assert engine.initialize_calls == 1
    config = engine.configuration
    assert config.packet_timeout_ms == 5_000
    assert config.connect_timeout_ms == 20_000
    assert config.is_outgoing


def test_log_files_created_and_reported(context, signalling, settings):
    engine = _connect(context, signalling, make_state_ready(["7.0.0"]))

    (call, log_files), = signalling.stored_logs
    assert call.id == 1
    assert log_files.log_file.exists()
    assert log_files.stats_log_file.exists()
    assert engine.configuration.log_file == log_files.log_file
    assert engine.configuration.persistent_state_file.parent.is_dir()


def test_filtered_servers_reach_engine(context, signalling):
    context.policy.set_option(DebugOption.IGNORE_TURN_SERVERS, True)
    state = make_state_ready(["7.0.0"], servers=[reflector(1), relay(2, True)])

    engine = _connect(context, signalling, state)

    assert [s.id for s in engine.configuration.state.servers] == [1]
    assert len(state.servers) == 2


def test_unfiltered_state_passed_through(context, signalling):
    state = make_state_ready(["7.0.0"])
    engine = _connect(context, signalling, state)
    assert engine.configuration.state is state


def test_no_usable_servers_propagates(context, signalling, shop):
    context.policy.set_option(DebugOption.DISABLE_IPV4, True)
    state = make_state_ready(["7.0.0"], servers=[reflector(1)])

    with pytest.raises(NoUsableServersError) as exc:
        _connect(context, signalling, state)

    assert exc.value.context.call_id == 1
    assert shop.built == []


def test_no_compatible_engine_returns_none(context, signalling):
    assert _connect(context, signalling, make_state_ready(["1.0.0"])) is None


def test_initialization_failure_returns_none_after_rollback(settings, signalling):
    shop = EngineShop()
    policy = make_policy()
    context = CallSetupContext(
        settings=settings,
        policy=policy,
        registry=make_registry(shop, policy, legacy_init_error=RuntimeError("udp")),
        server_config=ServerCallConfig(),
    )

    assert _connect(context, signalling, make_state_ready([LEGACY_VERSION])) is None
    assert shop.built[0].destroy_calls == 1


def test_debug_options_fold_into_options_and_state(context, signalling):
    context.policy.set_option(DebugOption.DISABLE_P2P, True)
    context.policy.set_option(DebugOption.DISABLE_AUTOMATIC_GAIN_CONTROL, True)

    engine = _connect(
        context, signalling, make_state_ready(["7.0.0"]),
        network_type=CallNetworkType.WIFI, echo_cancellation_strength=2,
    )

    assert not engine.configuration.state.allow_p2p
    assert not engine.options.audio_gain_control_enabled
    assert engine.options.echo_cancellation_strength == 2
    assert engine.options.network_type == CallNetworkType.WIFI


def test_server_config_flows_into_configuration(context, signalling):
    context.server_config.update_from_json(
        '{"use_system_aec": false, "voip_enable_stun_marking": 1,'
        ' "enable_h265_encoder": false}',
    )

    config = _connect(context, signalling, make_state_ready(["7.0.0"])).configuration

    assert not config.processing.prefer_system_echo_canceller
    assert config.processing.prefer_system_noise_suppressor
    assert config.enable_stun_marking
    assert not config.codecs.enable_h265_encoder
    assert config.codecs.enable_h264_encoder


def test_force_tcp_and_proxy_passed_through(context, signalling):
    config = _connect(
        context, signalling, make_state_ready(["7.0.0"]), force_tcp=True,
    ).configuration
    assert config.force_tcp
    assert config.proxy is None


def test_build_context_from_settings(tmp_path):
    context = build_call_setup_context(Settings(
        call_log_dir=str(tmp_path), platform_level=10, min_platform_level=19,
    ))
    assert context.registry.legacy_version == LEGACY_VERSION
    assert context.policy.is_below_platform_floor("7.0.0")
    assert context.local_protocol().library_versions == (LEGACY_VERSION,)
