"""Boundary Protocols: contracts between the negotiation core and its collaborators.

Invariants:
    - Core NEVER imports an engine implementation; engines arrive via EngineFactory
    - EngineInstance exposes only the members the Negotiator uses
    - All boundary methods are synchronous: negotiation blocks until the engine starts

Design Decisions:
    - Protocol over ABC: structural subtyping, engines need no shared base class
"""

from typing import TYPE_CHECKING, Protocol

from callsetup.core.domain_types import CallMetadata, ConnectionState, DataSavingMode

if TYPE_CHECKING:
    from callsetup.core.call_config import CallConfiguration, CallLogFiles, CallOptions


class EngineInstance(Protocol):
    """A constructed call-transport engine."""
    library_name: str
    library_version: str

    def initialize_and_connect(self) -> None: ...
    def perform_destroy(self) -> None: ...


class ConnectionStateObserver(Protocol):
    """Receives connection state changes from the running engine."""
    def on_connection_state_changed(self, state: ConnectionState) -> None: ...


class SignallingClient(Protocol):
    """The parts of the signalling client used during call setup."""
    def store_call_log_information(
        self, call: CallMetadata, log_files: "CallLogFiles | None",
    ) -> None: ...
    def call_packet_timeout_ms(self) -> int: ...
    def call_connect_timeout_ms(self) -> int: ...
    def effective_data_saving_mode(self) -> DataSavingMode: ...


class EngineFactory(Protocol):
    """Builds an engine for one version. Raises on unsupported build/capability."""
    def __call__(
        self,
        signalling: SignallingClient,
        call: CallMetadata,
        configuration: "CallConfiguration",
        options: "CallOptions",
        observer: ConnectionStateObserver,
        version: str,
    ) -> EngineInstance: ...
