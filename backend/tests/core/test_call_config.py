"""Call Configuration: immutability, option clamping, debug-option folding.

Tests cover:
    - CallConfiguration is frozen
    - CallOptions clamps echo strength and rejects unknown fields on update
    - DISABLE_AGC / DISABLE_AEC / DISABLE_NS / DISABLE_P2P fold into the structs
"""

import dataclasses

import pytest

from callsetup.core.call_config import (
    CallOptions,
    apply_debug_options_to_state,
    build_call_options,
    resolve_audio_processing,
)
from callsetup.core.domain_types import CallNetworkType
from callsetup.core.policy_flags import DebugOption

from tests.services.fake_engines import (
    make_configuration,
    make_policy,
    make_state_ready,
)


def test_configuration_is_frozen():
    config = make_configuration()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.force_tcp = True


def test_configuration_defaults_enable_codecs_and_system_processing():
    config = make_configuration()
    assert config.codecs.enable_h264_encoder and config.codecs.enable_h265_decoder
    assert config.processing.prefer_system_echo_canceller
    assert not config.enable_stun_marking


def test_options_clamp_echo_strength():
    assert CallOptions(echo_cancellation_strength=9).echo_cancellation_strength == 3
    assert CallOptions(echo_cancellation_strength=-2).echo_cancellation_strength == 0


def test_options_update_in_place():
    options = CallOptions()
    options.update(is_mic_disabled=True, network_type=CallNetworkType.WIFI)
    assert options.is_mic_disabled
    assert options.network_type == CallNetworkType.WIFI


def test_options_update_rejects_unknown_field():
    with pytest.raises(AttributeError):
        CallOptions().update(volume=11)


def test_options_update_rejects_method_names():
    options = CallOptions()
    with pytest.raises(AttributeError):
        options.update(update=1)
    with pytest.raises(AttributeError):
        options.update(__post_init__=None)
    assert callable(options.update)


def test_options_update_is_all_or_nothing():
    options = CallOptions()
    with pytest.raises(AttributeError):
        options.update(is_mic_disabled=True, volume=11)
    assert not options.is_mic_disabled


def test_build_options_without_debug_options_passes_through():
    options = build_call_options(
        make_policy(), CallNetworkType.LTE, True, 2, False,
    )
    assert options == CallOptions(CallNetworkType.LTE, True, 2, False)


def test_debug_agc_and_aec_override_options():
    policy = make_policy()
    policy.set_option(DebugOption.DISABLE_AUTOMATIC_GAIN_CONTROL, True)
    policy.set_option(DebugOption.DISABLE_ACOUSTIC_ECHO_CANCELLATION, True)
    options = build_call_options(policy, CallNetworkType.WIFI, True, 2, False)
    assert not options.audio_gain_control_enabled
    assert options.echo_cancellation_strength == 0


def test_debug_ns_disables_all_noise_suppression():
    policy = make_policy()
    policy.set_option(DebugOption.DISABLE_NOISE_SUPPRESSOR, True)
    processing = resolve_audio_processing(policy, True, True)
    assert processing.prefer_system_echo_canceller
    assert not processing.prefer_system_noise_suppressor
    assert not processing.enable_noise_suppressor


def test_server_preferences_respected_without_debug_options():
    processing = resolve_audio_processing(make_policy(), False, True)
    assert not processing.prefer_system_echo_canceller
    assert processing.prefer_system_noise_suppressor


def test_disable_p2p_returns_relay_only_copy():
    policy = make_policy()
    state = make_state_ready(["2.4.4"])
    assert apply_debug_options_to_state(state, policy) is state
    policy.set_option(DebugOption.DISABLE_P2P, True)
    relay_only = apply_debug_options_to_state(state, policy)
    assert not relay_only.allow_p2p
    assert state.allow_p2p
