"""Call Schemas: Pydantic models for the debug/inspection API boundary.

Invariants:
    - CallServerIn.type is a discriminated union on "kind" (reflector | webrtc)
    - to_domain()/from_domain() are the only converters to core dataclasses
    - port is 1-65535; at least one address must be present

Design Decisions:
    - Pydantic only at the edge: core/ stays on frozen dataclasses
    - peer_tag travels as hex text over JSON
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from callsetup.core.domain_types import (
    CallProtocol,
    CallServer,
    Reflector,
    ServerId,
    WebrtcRelay,
)


class ReflectorTypeIn(BaseModel):
    kind: Literal["reflector"] = "reflector"
    peer_tag: str = Field("", pattern=r"^([0-9a-fA-F]{2})*$")


class WebrtcTypeIn(BaseModel):
    kind: Literal["webrtc"] = "webrtc"
    supports_turn: bool
    supports_stun: bool = True
    username: str = ""
    password: str = ""


ServerTypeIn = Annotated[
    ReflectorTypeIn | WebrtcTypeIn, Field(discriminator="kind"),
]


class CallServerIn(BaseModel):
    """Relay server as posted to the filter preview endpoint."""
    id: int
    ipv4_address: str | None = None
    ipv6_address: str | None = None
    port: int = Field(ge=1, le=65535)
    type: ServerTypeIn

    @model_validator(mode="after")
    def require_an_address(self) -> "CallServerIn":
        if not self.ipv4_address and not self.ipv6_address:
            raise ValueError("server needs an ipv4_address or ipv6_address")
        return self

    def to_domain(self) -> CallServer:
        if isinstance(self.type, ReflectorTypeIn):
            server_type = Reflector(peer_tag=bytes.fromhex(self.type.peer_tag))
        else:
            server_type = WebrtcRelay(
                supports_turn=self.type.supports_turn,
                supports_stun=self.type.supports_stun,
                username=self.type.username,
                password=self.type.password,
            )
        return CallServer(
            id=ServerId(self.id),
            ipv4_address=self.ipv4_address,
            ipv6_address=self.ipv6_address,
            port=self.port,
            type=server_type,
        )


class CallServerOut(BaseModel):
    id: int
    ipv4_address: str | None
    ipv6_address: str | None
    port: int
    kind: Literal["reflector", "webrtc"]
    supports_turn: bool | None = None

    @classmethod
    def from_domain(cls, server: CallServer) -> "CallServerOut":
        supports_turn = None
        kind: Literal["reflector", "webrtc"] = "reflector"
        if isinstance(server.type, WebrtcRelay):
            kind = "webrtc"
            supports_turn = server.type.supports_turn
        return cls(
            id=server.id,
            ipv4_address=server.ipv4_address,
            ipv6_address=server.ipv6_address,
            port=server.port,
            kind=kind,
            supports_turn=supports_turn,
        )


class ServerFilterRequest(BaseModel):
    servers: list[CallServerIn] = Field(default_factory=list, max_length=256)


class ServerFilterResponse(BaseModel):
    filtering_active: bool
    servers: list[CallServerOut]


class CallProtocolOut(BaseModel):
    udp_p2p: bool
    udp_reflector: bool
    min_layer: int
    max_layer: int
    library_versions: list[str]

    @classmethod
    def from_domain(cls, protocol: CallProtocol) -> "CallProtocolOut":
        return cls(
            udp_p2p=protocol.udp_p2p,
            udp_reflector=protocol.udp_reflector,
            min_layer=protocol.min_layer,
            max_layer=protocol.max_layer,
            library_versions=list(protocol.library_versions),
        )


class VersionsOut(BaseModel):
    filtered: bool
    legacy_version: str
    versions: list[str]


# --- Debug surface -------------------------------------------------------------

class DebugOptionOut(BaseModel):
    name: str
    label: str
    bit: int
    enabled: bool


class DebugOptionUpdate(BaseModel):
    enabled: bool


class ForceDisableUpdate(BaseModel):
    disabled: bool


class ForceDisabledOut(BaseModel):
    version: str
    manually_disabled: bool
    below_platform_floor: bool
    force_disabled: bool
