"""
Firebase Remote Config tools for Fire Config MCP.

Tool names match the wire names MCP clients already use:
- remoteConfig [readOnly: true]
- upsertRemoteConfig [destructive: false]
- removeRemoteConfig [destructive: true]

Every tool takes an optional `env` and falls back to the default
environment chosen at startup.
"""

from typing import TYPE_CHECKING, Annotated

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession
from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError

from fireconfig_mcp.operations import (
    ReadConfigRequest,
    RemoveConfigRequest,
    UpsertConfigRequest,
    read_remote_config,
    remove_remote_config,
    upsert_remote_config,
)
from fireconfig_mcp.utils import RemoteConfigError, get_logger

if TYPE_CHECKING:
    from fireconfig_mcp.server import AppContext

logger = get_logger("tools.remote_config")


def _invalid_arguments(tool: str, error: ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )
    return f"Error: Invalid arguments for {tool}: {problems}"


# =============================================================================
# Tool Registration
# =============================================================================

def register(mcp: FastMCP):
    """Register the Remote Config tools with the MCP server."""

    # =========================================================================
    # remoteConfig - Read the template or a single parameter
    # [readOnly: true]
    # =========================================================================
    @mcp.tool(
        name="remoteConfig",
        description="Fetches the active Firebase Remote Config template or a single parameter",
        annotations=ToolAnnotations(readOnlyHint=True),
    )
    async def remote_config(
        key: Annotated[str | None, Field(description="Parameter key; omit to get the whole template")] = None,
        env: Annotated[str | None, Field(description="Environment name (default: first startup env)")] = None,
        ctx: Context[ServerSession, "AppContext"] = None,
    ) -> str:
        """
        Read Remote Config.

        Args:
            key: Parameter key; omit to get the whole template
            env: Environment name (default: first environment given at startup)

        Returns:
            JSON `{key: parameter}` for a single key, JSON with version, etag
            and parameters for the whole template, or a not-found message
        """
        app_ctx = ctx.request_context.lifespan_context

        try:
            request = ReadConfigRequest(key=key, env=env)
        except ValidationError as e:
            return _invalid_arguments("remoteConfig", e)

        try:
            result = await read_remote_config(app_ctx.registry, request)
        except RemoteConfigError as e:
            error_msg = f"Failed to read Remote Config: {e}"
            await ctx.error(error_msg)
            return f"Error: {error_msg}"

        if result.startswith("Error:"):
            await ctx.error(result)
        return result

    # =========================================================================
    # upsertRemoteConfig - Set a default value or a condition override
    # [destructive: false]
    # =========================================================================
    @mcp.tool(
        name="upsertRemoteConfig",
        description="Update an existing Remote Config key; optionally override an EXISTING condition.",
        annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False),
    )
    async def upsert_remote_config_tool(
        key: Annotated[str, Field(min_length=1, description="Parameter key (required)")],
        value: Annotated[str, Field(description="New string value")],
        conditionName: Annotated[
            str | None,
            Field(description="Name of an EXISTING condition to override; omit to set the default value"),
        ] = None,
        env: Annotated[str | None, Field(description="Environment name (default: first startup env)")] = None,
        ctx: Context[ServerSession, "AppContext"] = None,
    ) -> str:
        """
        Create or update a Remote Config parameter and publish the template.

        Conditions are never created; naming a missing one aborts the update.

        Args:
            key: Parameter key (created as an empty STRING if missing)
            value: New string value
            conditionName: EXISTING condition to override; omit to set the default value
            env: Environment name (default: first environment given at startup)

        Returns:
            Confirmation with the new template version, or an error description

        Example:
            - Default value: upsertRemoteConfig(key="welcome", value="hi")
            - Override: upsertRemoteConfig(key="welcome", value="hey", conditionName="ios")
        """
        app_ctx = ctx.request_context.lifespan_context

        try:
            request = UpsertConfigRequest(key=key, value=value, conditionName=conditionName, env=env)
        except ValidationError as e:
            return _invalid_arguments("upsertRemoteConfig", e)

        try:
            result = await upsert_remote_config(app_ctx.registry, request)
        except RemoteConfigError as e:
            error_msg = f"Failed to update '{key}': {e}"
            await ctx.error(error_msg)
            return f"Error: {error_msg}"

        if result.startswith("Error:"):
            await ctx.error(result)
        else:
            await ctx.info(result)
        return result

    # =========================================================================
    # removeRemoteConfig - Delete a parameter or one of its overrides
    # [destructive: true]
    # =========================================================================
    @mcp.tool(
        name="removeRemoteConfig",
        description="Delete a Remote Config key, or a specific conditional value on that key.",
        annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True),
    )
    async def remove_remote_config_tool(
        key: Annotated[str, Field(min_length=1, description="Parameter key (required)")],
        conditionName: Annotated[
            str | None,
            Field(description="Condition whose override to remove; omit to delete the whole key"),
        ] = None,
        env: Annotated[str | None, Field(description="Environment name (default: first startup env)")] = None,
        ctx: Context[ServerSession, "AppContext"] = None,
    ) -> str:
        """
        Remove a Remote Config parameter or a single conditional override.

        Nothing is published when there is nothing to remove.

        Args:
            key: Parameter key
            conditionName: Condition whose override to remove; omit to delete the whole key
            env: Environment name (default: first environment given at startup)

        Returns:
            Confirmation with the new template version, a nothing-removed
            message, or an error description
        """
        app_ctx = ctx.request_context.lifespan_context

        try:
            request = RemoveConfigRequest(key=key, conditionName=conditionName, env=env)
        except ValidationError as e:
            return _invalid_arguments("removeRemoteConfig", e)

        try:
            result = await remove_remote_config(app_ctx.registry, request)
        except RemoteConfigError as e:
            error_msg = f"Failed to remove '{key}': {e}"
            await ctx.error(error_msg)
            return f"Error: {error_msg}"

        if result.startswith("Error:"):
            await ctx.error(result)
        elif result.startswith("Removed"):
            await ctx.info(result)
        return result

    logger.info("Remote Config tools registered")
