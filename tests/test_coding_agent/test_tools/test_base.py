"""Tests for the Tool capability interface."""

import dataclasses

import pytest

from coding_agent.tools.base import Tool, ToolDefinition, is_tool_type, schema


class Greet(Tool):
    description = """
        Greet someone.

        Second paragraph.
    """
    parameters = schema(required=("who",), who="Name to greet")

    def execute(self, who):
        return {"greeting": f"hello {who}"}


class Named(Tool):
    name = "custom_name"
    description = "explicit name"

    def execute(self):
        return None


class Broken(Tool):
    description = "always fails"

    def execute(self):
        raise RuntimeError("boom")


class TestToolDefinition:
    def test_frozen(self):
        td = ToolDefinition(name="x", description="y")
        with pytest.raises(dataclasses.FrozenInstanceError):
            td.name = "z"  # type: ignore[misc]

    def test_parameters_default_to_empty_dict(self):
        assert ToolDefinition(name="x", description="y").parameters == {}


class TestSchema:
    def test_string_shorthand(self):
        assert schema(required=("a",), a="first") == {
            "type": "object",
            "properties": {"a": {"type": "string", "description": "first"}},
            "required": ["a"],
        }

    def test_full_property_passes_through(self):
        result = schema(n={"type": "integer", "description": "count"})
        assert result["properties"]["n"] == {"type": "integer", "description": "count"}
        assert result["required"] == []


class TestTool:
    def test_name_defaults_to_class_name(self):
        assert Greet.name == "Greet"
        assert Greet().name == "Greet"

    def test_explicit_name_kept(self):
        assert Named.name == "custom_name"

    def test_describe_dedents_description(self):
        definition = Greet().describe()
        assert definition.name == "Greet"
        assert definition.description == "Greet someone.\n\nSecond paragraph."
        assert definition.parameters["required"] == ["who"]

    def test_run_passes_keyword_arguments(self):
        assert Greet().run({"who": "ada"}) == {"greeting": "hello ada"}

    def test_run_converts_exceptions(self):
        assert Broken().run({}) == {"error": "boom"}

    def test_run_converts_bad_arguments(self):
        result = Greet().run({"whom": "ada"})
        assert "error" in result

    def test_abstract_tool_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            Tool()  # type: ignore[abstract]


class TestIsToolType:
    def test_concrete_subclass(self):
        assert is_tool_type(Greet) is True

    def test_base_class_is_abstract(self):
        assert is_tool_type(Tool) is False

    def test_instance_is_not_a_type(self):
        assert is_tool_type(Greet()) is False

    def test_unrelated_class(self):
        class Plain:
            def execute(self):
                return None

        assert is_tool_type(Plain) is False

    def test_subclass_missing_execute(self):
        class NoExecute(Tool):
            description = "incomplete"

        assert is_tool_type(NoExecute) is False
