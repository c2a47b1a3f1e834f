"""API test fixtures: FastAPI test client over a fake-engine CallSetupContext.

Invariants:
    - Every test gets a fresh CallSetupContext on app.state (no lifespan run)
    - The debug surface is enabled unless a test flips it
"""

import pytest
from httpx import ASGITransport, AsyncClient

from callsetup.config import Settings
from callsetup.infrastructure.server_config import ServerCallConfig
from callsetup.main import app
from callsetup.services.call_setup import CallSetupContext

from tests.services.fake_engines import EngineShop, make_policy, make_registry


@pytest.fixture
def call_setup(tmp_path):
    policy = make_policy()
    return CallSetupContext(
        settings=Settings(
            call_log_dir=str(tmp_path / "calls"),
            debug_surface_enabled=True,
        ),
        policy=policy,
        registry=make_registry(EngineShop(), policy, ["7.0.0", "8.0.0"]),
        server_config=ServerCallConfig(),
    )


@pytest.fixture
async def client(call_setup):
    app.state.call_setup = call_setup
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.state.call_setup = None
