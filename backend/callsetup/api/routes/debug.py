"""Debug Control Surface: developer-only toggles for debug options and versions.

Invariants:
    - Every route depends on require_debug_surface (403 when disabled)
    - Changes are process-wide, in-memory, never persisted
    - PUT is idempotent: same body twice leaves the same state

Design Decisions:
    - Options addressed by DebugOption member name (case-insensitive)
"""

import logging

from fastapi import APIRouter, Depends

from callsetup.api.dependencies import require_debug_surface
from callsetup.core.errors import UnknownDebugOptionError
from callsetup.core.policy_flags import (
    DEBUG_OPTION_LABELS,
    DebugOption,
    all_debug_options,
    debug_option_from_name,
)
from callsetup.core.semantic_version import SemanticVersion
from callsetup.schemas.call import (
    DebugOptionOut,
    DebugOptionUpdate,
    ForceDisabledOut,
    ForceDisableUpdate,
)
from callsetup.services.call_setup import CallSetupContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/debug", tags=["debug"])


def _option_out(option: DebugOption, enabled: DebugOption) -> DebugOptionOut:
    return DebugOptionOut(
        name=option.name.lower(),
        label=DEBUG_OPTION_LABELS[option],
        bit=int(option),
        enabled=bool(enabled & option),
    )


def _version_out(ctx: CallSetupContext, version: str) -> ForceDisabledOut:
    policy = ctx.policy
    return ForceDisabledOut(
        version=version,
        manually_disabled=policy.is_manually_force_disabled(version),
        below_platform_floor=policy.is_below_platform_floor(version),
        force_disabled=policy.is_force_disabled(version),
    )


@router.get("/options", response_model=list[DebugOptionOut])
async def list_debug_options(ctx: CallSetupContext = Depends(require_debug_surface)):
    enabled = ctx.policy.enabled_options()
    return [_option_out(option, enabled) for option in all_debug_options()]


@router.put("/options/{name}", response_model=DebugOptionOut)
async def set_debug_option(
    name: str,
    body: DebugOptionUpdate,
    ctx: CallSetupContext = Depends(require_debug_surface),
):
    option = debug_option_from_name(name)
    if option is None:
        raise UnknownDebugOptionError(name)
    ctx.policy.set_option(option, body.enabled)
    logger.warning(f"Debug option {option.name} set to {body.enabled}")
    return _option_out(option, ctx.policy.enabled_options())


@router.get("/force-disabled", response_model=list[ForceDisabledOut])
async def list_versions(ctx: CallSetupContext = Depends(require_debug_surface)):
    """Every known local version, then manually disabled unknown ones in version order."""
    versions = dict.fromkeys(ctx.registry.available_versions(False))
    disabled = sorted(ctx.policy.force_disabled_versions(), key=SemanticVersion.parse)
    versions.update(dict.fromkeys(disabled))
    return [_version_out(ctx, v) for v in versions]


@router.put("/force-disabled/{version}", response_model=ForceDisabledOut)
async def set_force_disabled(
    version: str,
    body: ForceDisableUpdate,
    ctx: CallSetupContext = Depends(require_debug_surface),
):
    ctx.policy.set_force_disabled(version, body.disabled)
    logger.warning(
        f"Version {version} force-disabled={body.disabled}",
        extra={"library_version": version},
    )
    return _version_out(ctx, version)
