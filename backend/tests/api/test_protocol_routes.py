"""Protocol Routes: advertisement, version listing, server-filter preview.

Tests cover:
    - /protocol advertises filtered versions and configured layers
    - /versions?filtered=false lists everything
    - /servers/filter passes servers through untouched with no options
    - Active filter applied; emptied list answers 422 NO_USABLE_SERVERS
    - Invalid server payloads answer 400
"""

from callsetup.core.policy_flags import DebugOption

REFLECTOR = {
    "id": 1, "ipv4_address": "10.0.0.1", "port": 443,
    "type": {"kind": "reflector", "peer_tag": "0a0b"},
}
TURN_RELAY = {
    "id": 2, "ipv4_address": "10.0.0.2", "ipv6_address": "::2", "port": 3478,
    "type": {"kind": "webrtc", "supports_turn": True},
}


async def test_protocol_advertisement(client, call_setup):
    call_setup.policy.set_force_disabled("8.0.0", True)
    resp = await client.get("/api/v1/protocol")
    assert resp.status_code == 200
    assert resp.json() == {
        "udp_p2p": True,
        "udp_reflector": True,
        "min_layer": 65,
        "max_layer": 92,
        "library_versions": ["2.4.4", "7.0.0"],
    }


async def test_unfiltered_versions(client, call_setup):
    call_setup.policy.set_force_disabled("8.0.0", True)
    resp = await client.get("/api/v1/versions", params={"filtered": "false"})
    assert resp.json() == {
        "filtered": False,
        "legacy_version": "2.4.4",
        "versions": ["2.4.4", "7.0.0", "8.0.0"],
    }


async def test_filter_preview_without_options(client):
    resp = await client.post(
        "/api/v1/servers/filter", json={"servers": [REFLECTOR, TURN_RELAY]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["filtering_active"] is False
    assert [s["id"] for s in body["servers"]] == [1, 2]
    assert body["servers"][1]["supports_turn"] is True
    assert body["servers"][0]["supports_turn"] is None


async def test_filter_preview_ignores_turn(client, call_setup):
    call_setup.policy.set_option(DebugOption.IGNORE_TURN_SERVERS, True)
    resp = await client.post(
        "/api/v1/servers/filter", json={"servers": [REFLECTOR, TURN_RELAY]},
    )
    body = resp.json()
    assert body["filtering_active"] is True
    assert [s["id"] for s in body["servers"]] == [1]


async def test_filter_preview_redacts_ipv4(client, call_setup):
    call_setup.policy.set_option(DebugOption.DISABLE_IPV4, True)
    resp = await client.post(
        "/api/v1/servers/filter", json={"servers": [REFLECTOR, TURN_RELAY]},
    )
    servers = resp.json()["servers"]
    assert [s["id"] for s in servers] == [2]
    assert servers[0]["ipv4_address"] is None
    assert servers[0]["ipv6_address"] == "::2"


async def test_emptied_list_answers_422(client, call_setup):
    call_setup.policy.set_option(DebugOption.IGNORE_NON_TURN_SERVERS, True)
    call_setup.policy.set_option(DebugOption.IGNORE_TURN_SERVERS, True)
    resp = await client.post("/api/v1/servers/filter", json={"servers": [TURN_RELAY]})
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["code"] == "NO_USABLE_SERVERS"
    assert error["category"] == "configuration"


async def test_server_without_address_400(client):
    server = {"id": 3, "port": 443, "type": {"kind": "reflector"}}
    resp = await client.post("/api/v1/servers/filter", json={"servers": [server]})
    assert resp.status_code == 400


async def test_unknown_server_kind_400(client):
    server = {**REFLECTOR, "type": {"kind": "carrier-pigeon"}}
    resp = await client.post("/api/v1/servers/filter", json={"servers": [server]})
    assert resp.status_code == 400
