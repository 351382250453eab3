"""
Pydantic models for Firebase Remote Config templates.

Templates are frozen snapshots. Nothing here mutates a template in place;
edits build a new snapshot (see fireconfig_mcp.edits).

Field names follow the Remote Config REST API (camelCase) so that a
template fetched from the service can be published back without any
renaming. Unknown fields (parameterGroups, personalization values, ...)
are kept as extras and round-trip untouched.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

STRING_VALUE_TYPE = "STRING"


class RemoteConfigValue(BaseModel):
    """A default or conditional value of a parameter."""

    model_config = ConfigDict(frozen=True, extra="allow")

    value: str | None = Field(default=None, description="Explicit string value")
    useInAppDefault: bool | None = Field(
        default=None,
        description="Use the client app's in-app default instead of a value",
    )


class RemoteConfigParameter(BaseModel):
    """A named configurable value with a default and per-condition overrides."""

    model_config = ConfigDict(frozen=True, extra="allow")

    valueType: str = Field(default=STRING_VALUE_TYPE, description="STRING, BOOLEAN, NUMBER or JSON")
    defaultValue: RemoteConfigValue | None = None
    conditionalValues: dict[str, RemoteConfigValue] | None = Field(
        default=None,
        description="Condition name -> override value",
    )
    description: str | None = None


class RemoteConfigCondition(BaseModel):
    """A named targeting predicate. Defined outside this server."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    expression: str = ""
    tagColor: str | None = None


class RemoteConfigVersion(BaseModel):
    """Version metadata attached to a published template."""

    model_config = ConfigDict(frozen=True, extra="allow")

    versionNumber: str | None = None
    updateTime: str | None = None
    updateOrigin: str | None = None
    updateType: str | None = None
    description: str | None = None


class RemoteConfigTemplate(BaseModel):
    """
    Snapshot of a Remote Config template.

    The etag is not part of the REST body; the client fills it in from the
    ETag response header.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    etag: str = ""
    version: RemoteConfigVersion | None = None
    parameters: dict[str, RemoteConfigParameter] = Field(default_factory=dict)
    conditions: list[RemoteConfigCondition] = Field(default_factory=list)

    @property
    def version_number(self) -> str | None:
        return self.version.versionNumber if self.version else None

    def has_condition(self, name: str) -> bool:
        """Check whether a condition with exactly this name exists."""
        return any(condition.name == name for condition in self.conditions)

    def with_parameter(self, key: str, parameter: RemoteConfigParameter) -> "RemoteConfigTemplate":
        """Return a copy with ``key`` set to ``parameter``."""
        parameters = dict(self.parameters)
        parameters[key] = parameter
        return self.model_copy(update={"parameters": parameters})

    def without_parameter(self, key: str) -> "RemoteConfigTemplate":
        """Return a copy without ``key`` (unchanged copy if it is absent)."""
        parameters = {k: v for k, v in self.parameters.items() if k != key}
        return self.model_copy(update={"parameters": parameters})

    def to_payload(self) -> dict[str, Any]:
        """
        Build the JSON body for a publish request.

        Unset optional fields are dropped so that, for example, a parameter
        whose last override was removed carries no conditionalValues key.
        """
        return self.model_dump(mode="json", exclude_none=True, exclude={"etag", "version"})


def dump_parameter(parameter: RemoteConfigParameter) -> dict[str, Any]:
    """Serialize a parameter the way the REST API returns it."""
    return parameter.model_dump(mode="json", exclude_none=True)


def dump_parameters(parameters: dict[str, RemoteConfigParameter]) -> dict[str, Any]:
    return {key: dump_parameter(parameter) for key, parameter in parameters.items()}
