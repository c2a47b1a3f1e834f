"""API Dependencies: access to the application-owned CallSetupContext.

Invariants:
    - The context is created once in the lifespan and stored on app.state
    - Debug routes are unreachable unless settings.debug_surface_enabled
"""

from fastapi import Depends, Request

from callsetup.core.errors import DebugSurfaceDisabledError
from callsetup.services.call_setup import CallSetupContext


def get_call_setup_context(request: Request) -> CallSetupContext:
    return request.app.state.call_setup


def require_debug_surface(
    ctx: CallSetupContext = Depends(get_call_setup_context),
) -> CallSetupContext:
    if not ctx.settings.debug_surface_enabled:
        raise DebugSurfaceDisabledError()
    return ctx
