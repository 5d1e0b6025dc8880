from __future__ import annotations

import pytest

from fs_mcp.tools import ToolDispatchError, ToolRegistry


def test_registry_keeps_deterministic_registration_order() -> None:
    registry = ToolRegistry()
    registry.register("alpha", lambda _: {"tool": "alpha"})
    registry.register("beta", lambda _: {"tool": "beta"})

    assert registry.names() == ("alpha", "beta")
    assert [spec.name for spec in registry.specs()] == ["alpha", "beta"]


def test_registry_dispatches_registered_tool() -> None:
    registry = ToolRegistry()
    registry.register("echo", lambda payload: {"payload": payload})

    result = registry.dispatch("echo", {"k": "v"})

    assert result == {"payload": {"k": "v"}}


def test_registry_rejects_unknown_tool() -> None:
    registry = ToolRegistry()

    with pytest.raises(ToolDispatchError) as error:
        registry.dispatch("missing", {})

    assert error.value.code == "UNKNOWN_TOOL"
    assert error.value.message == "Unknown tool: missing"


def test_spec_uses_input_schema_key() -> None:
    registry = ToolRegistry()
    schema = {"type": "object", "properties": {"path": {"type": "string"}}, "required": ["path"]}
    registry.register("read", lambda _: {}, description="Read a file.", input_schema=schema)

    assert registry.specs()[0].to_dict() == {
        "name": "read",
        "description": "Read a file.",
        "inputSchema": schema,
    }
