"""Domain Types: value semantics of the call-setup dataclasses and enums."""

import dataclasses

import pytest

from callsetup.core.domain_types import (
    CallNetworkType,
    EngineKind,
    NegotiationState,
    Socks5Proxy,
    WebrtcRelay,
)

from tests.services.fake_engines import reflector, relay


def test_servers_are_frozen_values():
    server = reflector(1)
    assert server == reflector(1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        server.port = 80


def test_has_ipv6():
    assert reflector(1, ipv6="::1").has_ipv6
    assert not reflector(1).has_ipv6
    assert not reflector(1, ipv6="").has_ipv6


def test_relay_defaults_to_stun():
    assert WebrtcRelay(supports_turn=False).supports_stun
    assert relay(2, True).type.supports_turn


def test_network_type_values_stable():
    assert CallNetworkType.UNKNOWN == 0
    assert CallNetworkType.WIFI == 6
    assert CallNetworkType.OTHER_MOBILE == 11


def test_enum_values_serialize_as_strings():
    assert EngineKind.LEGACY.value == "legacy"
    assert NegotiationState.ROLLING_BACK.value == "rolling_back"


def test_proxy_password_hidden_from_repr():
    proxy = Socks5Proxy("proxy.local", 1080, "user", "secret")
    assert "secret" not in repr(proxy)
