"""
Tests for the functional template edits.
"""

import pytest
from pydantic import ValidationError

from fireconfig_mcp.edits import (
    DeleteOverride,
    DeleteParameter,
    EnsureParameter,
    SetDefault,
    SetOverride,
    apply_edits,
)


class TestEnsureParameter:

    def test_creates_empty_string_parameter(self, template):
        """Test that a missing parameter is created as an empty STRING."""
        result = EnsureParameter("fresh").apply(template)

        param = result.parameters["fresh"]
        assert param.valueType == "STRING"
        assert param.defaultValue.value == ""
        assert param.conditionalValues is None

    def test_existing_parameter_untouched(self, template):
        """Test that an existing parameter is left as it is."""
        result = EnsureParameter("feature_enabled").apply(template)

        assert result.parameters["feature_enabled"] == template.parameters["feature_enabled"]


class TestSetValues:

    def test_set_default(self, template):
        """Test replacing a default value while keeping the value type."""
        result = SetDefault("feature_enabled", "true").apply(template)

        assert result.parameters["feature_enabled"].defaultValue.value == "true"
        assert result.parameters["feature_enabled"].valueType == "BOOLEAN"

    def test_set_override_adds_to_existing(self, template):
        """Test setting one override without touching the others."""
        result = SetOverride("welcome_message", "ios", "Hey").apply(template)

        overrides = result.parameters["welcome_message"].conditionalValues
        assert overrides["ios"].value == "Hey"
        assert overrides["android"].value == "Hello Android"

    def test_missing_parameter_is_a_no_op(self, template):
        """Test that value edits on a missing parameter change nothing."""
        assert SetDefault("missing", "x").apply(template) == template
        assert SetOverride("missing", "ios", "x").apply(template) == template


class TestDeletes:

    def test_delete_override(self, template):
        """Test deleting a single override."""
        result = DeleteOverride("welcome_message", "ios").apply(template)

        assert set(result.parameters["welcome_message"].conditionalValues) == {"android"}

    def test_delete_last_override_clears_container(self, template):
        """Test that removing the last override drops conditionalValues."""
        result = apply_edits(template, [
            DeleteOverride("welcome_message", "ios"),
            DeleteOverride("welcome_message", "android"),
        ])

        assert result.parameters["welcome_message"].conditionalValues is None
        assert "conditionalValues" not in result.to_payload()["parameters"]["welcome_message"]

    def test_delete_missing_override_is_a_no_op(self, template):
        """Test deleting an override that does not exist."""
        assert DeleteOverride("feature_enabled", "ios").apply(template) == template

    def test_delete_parameter(self, template):
        """Test deleting a whole parameter."""
        result = DeleteParameter("feature_enabled").apply(template)

        assert "feature_enabled" not in result.parameters
        assert "welcome_message" in result.parameters


class TestSnapshots:
    """Edits build new snapshots and never touch their input."""

    def test_input_is_not_modified(self, template):
        """Test that the input snapshot survives a chain of edits unchanged."""
        before = template.model_dump()

        apply_edits(template, [
            EnsureParameter("fresh"),
            SetDefault("fresh", "1"),
            SetOverride("welcome_message", "ios", "changed"),
            DeleteOverride("welcome_message", "android"),
            DeleteParameter("feature_enabled"),
        ])

        assert template.model_dump() == before

    def test_etag_and_version_carried(self, template):
        """Test that etag and version are carried into the new snapshot."""
        result = apply_edits(template, [EnsureParameter("fresh"), SetDefault("fresh", "1")])

        assert result.etag == "etag-1"
        assert result.version_number == "1"

    def test_template_is_frozen(self, template):
        """Test that templates reject attribute assignment."""
        with pytest.raises(ValidationError):
            template.etag = "other"
