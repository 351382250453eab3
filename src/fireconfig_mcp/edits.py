"""
Functional edits on Remote Config template snapshots.

Each edit takes a template and returns a new one; the input is never
modified. Operations collect a list of edits and fold them with
apply_edits() before publishing the result.

Preconditions (the condition exists, the parameter exists, ...) are the
caller's job. The edits themselves are total: an edit whose target is
missing returns the template unchanged.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol

from fireconfig_mcp.models import (
    STRING_VALUE_TYPE,
    RemoteConfigParameter,
    RemoteConfigTemplate,
    RemoteConfigValue,
)


class TemplateEdit(Protocol):
    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate: ...


@dataclass(frozen=True)
class EnsureParameter:
    """Create ``key`` as an empty STRING parameter if it does not exist yet."""

    key: str

    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate:
        if self.key in template.parameters:
            return template
        parameter = RemoteConfigParameter(
            valueType=STRING_VALUE_TYPE,
            defaultValue=RemoteConfigValue(value=""),
        )
        return template.with_parameter(self.key, parameter)


@dataclass(frozen=True)
class SetDefault:
    """Replace the default value of ``key``."""

    key: str
    value: str

    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate:
        parameter = template.parameters.get(self.key)
        if parameter is None:
            return template
        updated = parameter.model_copy(update={"defaultValue": RemoteConfigValue(value=self.value)})
        return template.with_parameter(self.key, updated)


@dataclass(frozen=True)
class SetOverride:
    """Set (or overwrite) the value of ``key`` for one condition."""

    key: str
    condition_name: str
    value: str

    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate:
        parameter = template.parameters.get(self.key)
        if parameter is None:
            return template
        overrides = dict(parameter.conditionalValues or {})
        overrides[self.condition_name] = RemoteConfigValue(value=self.value)
        updated = parameter.model_copy(update={"conditionalValues": overrides})
        return template.with_parameter(self.key, updated)


@dataclass(frozen=True)
class DeleteOverride:
    """
    Drop the override of ``key`` for one condition.

    When no overrides are left the container itself is removed, so the
    published parameter has no empty conditionalValues mapping.
    """

    key: str
    condition_name: str

    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate:
        parameter = template.parameters.get(self.key)
        if parameter is None or self.condition_name not in (parameter.conditionalValues or {}):
            return template
        overrides = {
            name: value
            for name, value in parameter.conditionalValues.items()
            if name != self.condition_name
        }
        updated = parameter.model_copy(update={"conditionalValues": overrides or None})
        return template.with_parameter(self.key, updated)


@dataclass(frozen=True)
class DeleteParameter:
    """Remove ``key`` and all of its values."""

    key: str

    def apply(self, template: RemoteConfigTemplate) -> RemoteConfigTemplate:
        return template.without_parameter(self.key)


def apply_edits(template: RemoteConfigTemplate, edits: Iterable[TemplateEdit]) -> RemoteConfigTemplate:
    """Apply ``edits`` in order and return the resulting snapshot."""
    for edit in edits:
        template = edit.apply(template)
    return template
