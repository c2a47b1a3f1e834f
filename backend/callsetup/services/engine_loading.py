"""Engine Loading: resolve engine factories from settings into a registry.

Invariants:
    - Entrypoints are "package.module:callable"; a missing module or attribute
      raises EngineEntrypointError at startup, not during a call
    - The legacy engine is ALWAYS registered: without a binding its factory
      raises EngineConstructionError, so the version is still advertised
    - Pluggable engines are registered in settings order

Design Decisions:
    - importlib over plugin auto-discovery: every binding is explicit in settings
"""

import importlib
import logging

from callsetup.config import Settings
from callsetup.core.call_config import CallConfiguration, CallOptions
from callsetup.core.domain_types import CallMetadata
from callsetup.core.engine_protocols import (
    ConnectionStateObserver,
    EngineFactory,
    EngineInstance,
    SignallingClient,
)
from callsetup.core.engine_registry import EngineCandidate, EngineCandidateRegistry
from callsetup.core.errors import EngineConstructionError, EngineEntrypointError
from callsetup.core.policy_flags import PolicyFlags

logger = logging.getLogger(__name__)


def load_engine_factory(entrypoint: str) -> EngineFactory:
    """Import "module:callable" and return the callable."""
    module_path, _, attr = entrypoint.partition(":")
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise EngineEntrypointError(entrypoint, f"cannot import {module_path}: {e}") from e
    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise EngineEntrypointError(entrypoint, f"callable '{attr}' not found")
    return factory


def unbound_engine_factory(name: str) -> EngineFactory:
    """Factory for an engine with no binding installed: always fails to construct."""

    def factory(
        signalling: SignallingClient,
        call: CallMetadata,
        configuration: CallConfiguration,
        options: CallOptions,
        observer: ConnectionStateObserver,
        version: str,
    ) -> EngineInstance:
        raise EngineConstructionError(version, f"no binding installed for {name}")

    return factory


def build_engine_registry(
    settings: Settings, policy: PolicyFlags,
) -> EngineCandidateRegistry:
    """Registry with the legacy engine and every configured pluggable engine."""
    if settings.legacy_engine_entrypoint:
        legacy_factory = load_engine_factory(settings.legacy_engine_entrypoint)
    else:
        logger.warning(
            f"No binding configured for legacy engine {settings.legacy_engine_name}",
        )
        legacy_factory = unbound_engine_factory(settings.legacy_engine_name)

    registry = EngineCandidateRegistry(
        legacy=EngineCandidate(
            name=settings.legacy_engine_name,
            version=settings.legacy_engine_version,
            factory=legacy_factory,
            is_legacy=True,
        ),
        policy=policy,
    )
    for version, entrypoint in settings.pluggable_engine_entrypoints.items():
        registry.register(EngineCandidate(
            name=entrypoint.partition(":")[2],
            version=version,
            factory=load_engine_factory(entrypoint),
        ))
    logger.info(
        f"Engine registry ready: legacy={registry.legacy_version} "
        f"pluggable={list(registry.pluggable_versions())}",
    )
    return registry
