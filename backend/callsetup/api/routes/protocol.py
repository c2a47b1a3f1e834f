"""Protocol & Servers: local version advertisement and server-filter preview.

Invariants:
    - GET /protocol returns the same CallProtocol an outgoing call would send
    - POST /servers/filter applies the CURRENT debug options; an emptied list
      surfaces as NO_USABLE_SERVERS (422), never as an empty 200

Design Decisions:
    - Read-only with respect to policy: toggles live in debug.py
"""

import logging

from fastapi import APIRouter, Depends, Query

from callsetup.api.dependencies import get_call_setup_context
from callsetup.core.filter_servers import filter_call_servers, needs_server_filtering
from callsetup.schemas.call import (
    CallProtocolOut,
    CallServerOut,
    ServerFilterRequest,
    ServerFilterResponse,
    VersionsOut,
)
from callsetup.services.call_setup import CallSetupContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["protocol"])


@router.get("/protocol", response_model=CallProtocolOut)
async def get_local_protocol(
    ctx: CallSetupContext = Depends(get_call_setup_context),
):
    """Protocol advertised for outgoing calls."""
    return CallProtocolOut.from_domain(ctx.local_protocol())


@router.get("/versions", response_model=VersionsOut)
async def get_available_versions(
    filtered: bool = Query(True),
    ctx: CallSetupContext = Depends(get_call_setup_context),
):
    return VersionsOut(
        filtered=filtered,
        legacy_version=ctx.registry.legacy_version,
        versions=list(ctx.registry.available_versions(filtered)),
    )


@router.post("/servers/filter", response_model=ServerFilterResponse)
async def preview_server_filter(
    body: ServerFilterRequest,
    ctx: CallSetupContext = Depends(get_call_setup_context),
):
    """Run the server filter on a posted list with the current debug options."""
    snapshot = ctx.policy.snapshot()
    servers = [s.to_domain() for s in body.servers]
    filtered = filter_call_servers(servers, snapshot)
    return ServerFilterResponse(
        filtering_active=needs_server_filtering(snapshot),
        servers=[CallServerOut.from_domain(s) for s in filtered],
    )
