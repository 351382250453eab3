"""
Remote Config operations: read, upsert and remove.

Every operation is a complete fetch -> edit -> publish cycle against the
live template of one environment. Nothing is cached between calls and
publishes are forced, so the last writer wins.

Expected outcomes (unknown environment, missing parameter, missing
condition, ...) come back as text. RemoteConfigError from the service is
left to the caller; the tool layer turns it into an error message.
"""

import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fireconfig_mcp.edits import (
    DeleteOverride,
    DeleteParameter,
    EnsureParameter,
    SetDefault,
    SetOverride,
    apply_edits,
)
from fireconfig_mcp.models import dump_parameter, dump_parameters
from fireconfig_mcp.registry import EnvironmentHandle, EnvironmentRegistry
from fireconfig_mcp.utils import get_logger

logger = get_logger("operations")


# =============================================================================
# Request records
# =============================================================================

def _blank_to_none(value):
    # Optional arguments sent as "" mean "not given"
    return None if value == "" else value


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    env: str | None = Field(default=None, description="Environment name; defaults to the startup default")

    @field_validator("env", mode="before")
    @classmethod
    def blank_env_is_none(cls, value):
        return _blank_to_none(value)


class _ConditionRequest(_Request):
    @field_validator("condition_name", mode="before", check_fields=False)
    @classmethod
    def blank_condition_is_none(cls, value):
        return _blank_to_none(value)


class ReadConfigRequest(_Request):
    """Arguments of remoteConfig."""

    key: str | None = Field(default=None, description="Parameter key; omit for the whole template")

    @field_validator("key", mode="before")
    @classmethod
    def blank_key_is_none(cls, value):
        return _blank_to_none(value)


class UpsertConfigRequest(_ConditionRequest):
    """Arguments of upsertRemoteConfig."""

    key: str = Field(min_length=1, description="Parameter key")
    value: str = Field(description="New value")
    condition_name: str | None = Field(
        default=None,
        alias="conditionName",
        description="Existing condition to override; omit to set the default value",
    )


class RemoveConfigRequest(_ConditionRequest):
    """Arguments of removeRemoteConfig."""

    key: str = Field(min_length=1, description="Parameter key")
    condition_name: str | None = Field(
        default=None,
        alias="conditionName",
        description="Condition whose override is removed; omit to remove the parameter",
    )


# =============================================================================
# Helpers
# =============================================================================

def _lookup(registry: EnvironmentRegistry, env: str | None) -> tuple[str, EnvironmentHandle | None]:
    # An explicit but unregistered env is reported, never silently redirected
    # to the default environment
    if env and env not in registry:
        return env, None
    name = registry.resolve(env)
    return name, registry.get(name)


def unknown_env_message(name: str) -> str:
    return f"Error: Unknown env: {name}"


# =============================================================================
# Operations
# =============================================================================

async def read_remote_config(registry: EnvironmentRegistry, request: ReadConfigRequest) -> str:
    """
    Return one parameter, or the template's version, etag and parameters.

    Conditions are left out of the full-template response to keep it small.
    """
    env, handle = _lookup(registry, request.env)
    if handle is None:
        return unknown_env_message(env)

    template = await handle.client.get_template()

    if request.key:
        parameter = template.parameters.get(request.key)
        if parameter is None:
            return f'Parameter "{request.key}" not found in Remote Config'
        return json.dumps({request.key: dump_parameter(parameter)})

    return json.dumps({
        "version": template.version.model_dump(mode="json", exclude_none=True) if template.version else None,
        "etag": template.etag,
        "parameters": dump_parameters(template.parameters),
    })


async def upsert_remote_config(registry: EnvironmentRegistry, request: UpsertConfigRequest) -> str:
    """
    Set a parameter's default value or its override for an existing condition.

    The parameter is created as an empty STRING if needed. A condition that
    does not exist aborts the update before anything is published.
    """
    env, handle = _lookup(registry, request.env)
    if handle is None:
        return unknown_env_message(env)

    template = await handle.client.get_template()
    key, value, condition = request.key, request.value, request.condition_name

    edits = [EnsureParameter(key)]
    if condition is None:
        edits.append(SetDefault(key, value))
    else:
        if not template.has_condition(condition):
            return f'Error: Condition "{condition}" doesn\'t exist in the template. Update aborted.'
        edits.append(SetOverride(key, condition, value))

    published = await handle.client.publish_template(apply_edits(template, edits), force=True)
    version = published.version_number
    logger.info(f"[{env}] upserted {key!r} (condition={condition!r}) -> v{version}")

    if condition is None:
        return f'Updated default "{key}" -> "{value}" (v{version}).'
    return f'Updated "{key}" for condition "{condition}" -> "{value}" (v{version}).'


async def remove_remote_config(registry: EnvironmentRegistry, request: RemoveConfigRequest) -> str:
    """
    Remove a parameter, or only its override for one condition.

    Nothing is published when there is nothing to remove.
    """
    env, handle = _lookup(registry, request.env)
    if handle is None:
        return unknown_env_message(env)

    template = await handle.client.get_template()
    key, condition = request.key, request.condition_name

    parameter = template.parameters.get(key)
    if parameter is None:
        return f'Parameter "{key}" doesn\'t exist. Nothing removed.'

    if condition is None:
        edit = DeleteParameter(key)
        removed = f'parameter "{key}"'
    else:
        if condition not in (parameter.conditionalValues or {}):
            return f'Parameter "{key}" has no override for condition "{condition}". Nothing removed.'
        edit = DeleteOverride(key, condition)
        removed = f'override for condition "{condition}" on parameter "{key}"'

    published = await handle.client.publish_template(edit.apply(template), force=True)
    version = published.version_number
    logger.info(f"[{env}] removed {removed} -> v{version}")

    return f"Removed {removed}. Template v{version} published."
