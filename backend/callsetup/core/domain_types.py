"""Domain Types: call metadata, relay servers and enums shared across the core.

Invariants:
    - All signalling-provided values are frozen dataclasses; the core never mutates them
    - ServerType is a closed union (Reflector | WebrtcRelay), matched exhaustively
    - CallProtocol.library_versions keeps the peer's order (it is the tie-break)
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - Frozen dataclasses over Pydantic for core values: no IO, no validation cost;
      Pydantic lives only at the API boundary (schemas/)
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import NewType, TypeAlias


# ─── Identity Types ──────────────────────────────────────────────

CallId = NewType("CallId", int)
ServerId = NewType("ServerId", int)


# ─── Relay Servers ───────────────────────────────────────────────

@dataclass(frozen=True)
class Reflector:
    """Reflector relay. No TURN/non-TURN distinction applies."""
    peer_tag: bytes = b""


@dataclass(frozen=True)
class WebrtcRelay:
    """WebRTC relay (STUN and/or TURN)."""
    supports_turn: bool
    supports_stun: bool = True
    username: str = ""
    password: str = ""


ServerType: TypeAlias = Reflector | WebrtcRelay


@dataclass(frozen=True)
class CallServer:
    """Relay server descriptor as delivered by signalling."""
    id: ServerId
    ipv4_address: str | None
    ipv6_address: str | None
    port: int
    type: ServerType

    @property
    def has_ipv6(self) -> bool:
        return bool(self.ipv6_address)


# ─── Call Metadata ───────────────────────────────────────────────

@dataclass(frozen=True)
class CallProtocol:
    """Protocol advertisement (peer's, or our own for outgoing calls)."""
    udp_p2p: bool
    udp_reflector: bool
    min_layer: int
    max_layer: int
    library_versions: tuple[str, ...] = ()


@dataclass(frozen=True)
class CallStateReady:
    """Signalling "ready" state: everything needed to start an engine."""
    protocol: CallProtocol
    servers: tuple[CallServer, ...] = ()
    config: str = ""
    encryption_key: bytes = b""
    emojis: tuple[str, ...] = ()
    allow_p2p: bool = True
    custom_parameters: str = ""


@dataclass(frozen=True)
class CallMetadata:
    """Call identity as known to the signalling client."""
    id: CallId
    peer_user_id: int
    is_outgoing: bool
    is_video: bool = False


@dataclass(frozen=True)
class Socks5Proxy:
    host: str
    port: int
    username: str = ""
    password: str = field(default="", repr=False)


# ─── Enums ───────────────────────────────────────────────────────

class CallNetworkType(IntEnum):
    """Network classification handed to engines (stable integer codes)."""
    UNKNOWN = 0
    GPRS = 1
    EDGE = 2
    THIRD_GEN = 3
    HSPA = 4
    LTE = 5
    WIFI = 6
    ETHERNET = 7
    OTHER_HIGH_SPEED = 8
    OTHER_LOW_SPEED = 9
    DIALUP = 10
    OTHER_MOBILE = 11


class DataSavingMode(str, Enum):
    NEVER = "never"
    MOBILE = "mobile"
    ALWAYS = "always"


class EngineKind(str, Enum):
    """Engine variant selected by negotiation."""
    LEGACY = "legacy"
    PLUGGABLE = "pluggable"


class NegotiationState(str, Enum):
    """Per-call-attempt negotiation lifecycle."""
    IDLE = "idle"
    SCANNING = "scanning"
    CANDIDATE_CHOSEN = "candidate_chosen"
    STARTING = "starting"
    RUNNING = "running"
    ROLLING_BACK = "rolling_back"
    NO_MATCH = "no_match"
    FAILED = "failed"


class ConnectionState(str, Enum):
    """States reported by engines to the connection observer."""
    WAIT_INIT = "wait_init"
    WAIT_INIT_ACK = "wait_init_ack"
    ESTABLISHED = "established"
    FAILED = "failed"
    RECONNECTING = "reconnecting"
