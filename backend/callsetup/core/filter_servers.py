"""Call Server Filtering: apply IPv4/TURN debug options to the relay list.

Invariants:
    - All functions are PURE: no IO, inputs never mutated
    - No filtering option set -> the input object is returned unchanged (any length)
    - Order preserved, single pass
    - Reflector servers always survive TURN/non-TURN filtering
    - DISABLE_IPV4 drops servers without IPv6 and clears ipv4_address on survivors
    - Active filtering that empties the list raises NoUsableServersError

Design Decisions:
    - Raise (not return None): an emptied list is a misconfiguration and must
      never degrade into a silent "no call"
    - match + assert_never over ServerType: adding a variant fails type checking
"""

import dataclasses
from collections.abc import Sequence
from typing import assert_never

from callsetup.core.domain_types import CallServer, Reflector, WebrtcRelay
from callsetup.core.errors import NoUsableServersError
from callsetup.core.policy_flags import (
    SERVER_FILTER_OPTIONS,
    DebugOption,
    OptionView,
)


def needs_server_filtering(policy: OptionView) -> bool:
    """True if any of DISABLE_IPV4 / IGNORE_TURN / IGNORE_NON_TURN is set."""
    return any(policy.is_option_enabled(option) for option in SERVER_FILTER_OPTIONS)


def passes_turn_filter(
    server: CallServer, ignore_turn: bool, ignore_non_turn: bool,
) -> bool:
    match server.type:
        case Reflector():
            return True
        case WebrtcRelay(supports_turn=supports_turn):
            if supports_turn and ignore_turn:
                return False
            if not supports_turn and ignore_non_turn:
                return False
            return True
        case unreachable:
            assert_never(unreachable)


def redact_ipv4(server: CallServer) -> CallServer | None:
    """IPv6-only copy of server, or None when it has no IPv6 address."""
    if not server.has_ipv6:
        return None
    return dataclasses.replace(server, ipv4_address=None)


def filter_call_servers(
    servers: Sequence[CallServer], policy: OptionView,
) -> Sequence[CallServer]:
    """Filter servers per debug options. Raises NoUsableServersError if emptied."""
    if not needs_server_filtering(policy):
        return servers

    disable_ipv4 = policy.is_option_enabled(DebugOption.DISABLE_IPV4)
    ignore_turn = policy.is_option_enabled(DebugOption.IGNORE_TURN_SERVERS)
    ignore_non_turn = policy.is_option_enabled(DebugOption.IGNORE_NON_TURN_SERVERS)

    filtered: list[CallServer] = []
    for server in servers:
        if (ignore_turn or ignore_non_turn) and not passes_turn_filter(
            server, ignore_turn, ignore_non_turn,
        ):
            continue
        if disable_ipv4:
            server = redact_ipv4(server)
            if server is None:
                continue
        filtered.append(server)

    if not filtered:
        raise NoUsableServersError(len(servers))
    return filtered
