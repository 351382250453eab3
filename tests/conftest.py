"""
Pytest configuration and fixtures for Fire Config MCP tests.

Provides fixtures for:
- In-memory Remote Config client (unit tests)
- Environment registry built from fake clients
- MCP server context
- Real Firebase projects (integration tests)
"""

import asyncio
import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from fireconfig_mcp.models import RemoteConfigTemplate
from fireconfig_mcp.utils import RemoteConfigError


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require Firebase credentials)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is passed."""
    if config.getoption("--integration", default=False):
        return

    skip_integration = pytest.mark.skip(reason="need --integration flag to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests (requires serviceAccount_<env>.json files)",
    )


# =============================================================================
# Fake Remote Config service
# =============================================================================

def sample_template_data() -> dict:
    """REST-shaped template with two conditions and two parameters."""
    return {
        "conditions": [
            {"name": "ios", "expression": "device.os == 'ios'", "tagColor": "BLUE"},
            {"name": "android", "expression": "device.os == 'android'"},
        ],
        "parameters": {
            "welcome_message": {
                "defaultValue": {"value": "Hello"},
                "conditionalValues": {
                    "ios": {"value": "Hello iOS"},
                    "android": {"value": "Hello Android"},
                },
                "valueType": "STRING",
            },
            "feature_enabled": {
                "defaultValue": {"value": "false"},
                "valueType": "BOOLEAN",
                "description": "Master switch",
            },
        },
        "parameterGroups": {},
        "version": {"versionNumber": "1", "updateOrigin": "CONSOLE"},
    }


class FakeRemoteConfigClient:
    """
    In-memory stand-in for RemoteConfigClient.

    Stores the template as REST JSON, hands out fresh snapshots and bumps the
    version on every publish. get_template() yields to the event loop after
    taking its snapshot, like a real network round trip.
    """

    def __init__(self, data: dict | None = None):
        self.data = copy.deepcopy(data if data is not None else sample_template_data())
        self.version = int(self.data.get("version", {}).get("versionNumber", "1"))
        self.publish_count = 0
        self.published_payloads: list[dict] = []
        self.closed = False

    @property
    def etag(self) -> str:
        return f"etag-{self.version}"

    def snapshot(self) -> RemoteConfigTemplate:
        return RemoteConfigTemplate.model_validate({**copy.deepcopy(self.data), "etag": self.etag})

    async def get_template(self) -> RemoteConfigTemplate:
        template = self.snapshot()
        await asyncio.sleep(0)
        return template

    async def publish_template(self, template: RemoteConfigTemplate, force: bool = False) -> RemoteConfigTemplate:
        if not force and template.etag != self.etag:
            raise RemoteConfigError("ABORTED: etag mismatch", status_code=409)
        payload = template.to_payload()
        self.published_payloads.append(payload)
        self.publish_count += 1
        self.version += 1
        self.data = {**copy.deepcopy(payload), "version": {"versionNumber": str(self.version)}}
        return self.snapshot()

    async def aclose(self):
        self.closed = True


# =============================================================================
# Mock Fixtures (Unit Tests)
# =============================================================================

@pytest.fixture
def template():
    """Sample template snapshot (etag "etag-1", version 1)."""
    return RemoteConfigTemplate.model_validate({**sample_template_data(), "etag": "etag-1"})


@pytest.fixture
def fake_client():
    """Fake Remote Config client seeded with the sample template."""
    return FakeRemoteConfigClient()


@pytest.fixture
def staging_client():
    """Second fake client, for multi-environment tests."""
    return FakeRemoteConfigClient({
        "conditions": [],
        "parameters": {"welcome_message": {"defaultValue": {"value": "Hello staging"}}},
        "version": {"versionNumber": "7"},
    })


@pytest.fixture
def registry(fake_client):
    """Registry with a single "dev" environment."""
    from fireconfig_mcp.registry import EnvironmentRegistry

    return EnvironmentRegistry.from_clients({"dev": fake_client})


@pytest.fixture
def multi_registry(fake_client, staging_client):
    """Registry with "dev" and "staging", started as `fire-config-mcp staging`."""
    from fireconfig_mcp.registry import EnvironmentRegistry

    return EnvironmentRegistry.from_clients(
        {"dev": fake_client, "staging": staging_client},
        startup_names=["staging"],
    )


@pytest.fixture
def mock_app_context(registry):
    """Create an AppContext for testing tools."""
    from fireconfig_mcp.server import AppConfig, AppContext

    return AppContext(registry=registry, config=AppConfig())


@pytest.fixture
def mock_mcp_context(mock_app_context):
    """Create a mock MCP Context with request_context."""
    context = MagicMock()
    context.request_context = MagicMock()
    context.request_context.lifespan_context = mock_app_context

    # Mock logging methods as async
    context.info = AsyncMock()
    context.error = AsyncMock()
    context.warning = AsyncMock()
    context.debug = AsyncMock()

    return context


@pytest.fixture
def get_tool():
    """Return a function that looks up a registered tool's callable by name."""
    from mcp.server.fastmcp import FastMCP

    from fireconfig_mcp.tools import remote_config as remote_config_tools

    mcp = FastMCP("test")
    remote_config_tools.register(mcp)

    def _get(name: str):
        for tool in mcp._tool_manager._tools.values():
            if tool.name == name:
                return tool.fn
        raise AssertionError(f"Tool not found: {name}")

    return _get


# =============================================================================
# Integration Test Fixtures (Real Firebase)
# =============================================================================

@pytest.fixture
async def integration_registry():
    """Registry built from serviceAccount_dev.json in the working directory."""
    from fireconfig_mcp.registry import CredentialError, EnvironmentRegistry

    try:
        registry = EnvironmentRegistry.from_credentials(["dev"])
    except CredentialError as e:
        pytest.skip(str(e))

    yield registry

    await registry.aclose()
