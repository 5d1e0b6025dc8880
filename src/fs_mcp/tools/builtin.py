"""Built-in filesystem tools and their argument validation."""

from __future__ import annotations

import json
from collections.abc import Callable

from fs_mcp import fileops
from fs_mcp.config import SearchConfig
from fs_mcp.editing import Edit, EditRequest, apply_file_edits
from fs_mcp.search import search_files
from fs_mcp.security import (
    PathSandbox,
    SecurityLimits,
    enforce_batch_limit,
    enforce_file_size_limit,
)
from fs_mcp.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry
from fs_mcp.tools.schemas import TOOL_SCHEMAS

NO_MATCHES_TEXT = "No matches found"
READ_SEPARATOR = "\n---\n"

AuditReader = Callable[[str | None, int, str | None], list[dict[str, object]]]


def register_builtin_tools(
    registry: ToolRegistry,
    sandbox: PathSandbox,
    limits: SecurityLimits,
    search_config: SearchConfig,
    read_audit_entries: AuditReader,
) -> None:
    """Register the filesystem tool set in listing order."""
    handlers: dict[str, ToolHandler] = {
        "read_file": _read_file_handler(sandbox, limits),
        "read_multiple_files": _read_multiple_files_handler(sandbox, limits),
        "write_file": _write_file_handler(sandbox),
        "edit_file": _edit_file_handler(sandbox, limits),
        "create_directory": _create_directory_handler(sandbox),
        "list_directory": _list_directory_handler(sandbox),
        "directory_tree": _directory_tree_handler(sandbox),
        "move_file": _move_file_handler(sandbox),
        "search_files": _search_files_handler(sandbox, limits, search_config),
        "get_file_info": _get_file_info_handler(sandbox),
        "list_allowed_directories": _list_allowed_directories_handler(sandbox),
        "audit_log": _audit_log_handler(limits, read_audit_entries),
    }
    for name, handler in handlers.items():
        description, input_schema = TOOL_SCHEMAS[name]
        registry.register(name, handler, description=description, input_schema=input_schema)


def _required_string(arguments: dict[str, object], key: str, tool: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be a non-empty string.",
        )
    return value


def _string_list(arguments: dict[str, object], key: str, tool: str) -> list[str]:
    value = arguments.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} {key} must be an array of strings.",
        )
    return list(value)


def _read_file_handler(sandbox: PathSandbox, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "read_file")
        resolved = sandbox.resolve(path_value)
        content = fileops.read_text_file(resolved, limits)
        return {"path": path_value, "content": content}

    return handler


def _read_multiple_files_handler(sandbox: PathSandbox, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        if not isinstance(arguments.get("paths"), list):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="read_multiple_files paths must be an array of strings.",
            )
        paths = _string_list(arguments, "paths", "read_multiple_files")
        enforce_batch_limit(len(paths), limits)
        results = fileops.read_multiple_files(sandbox, paths, limits)
        return {
            "files": [
                {"path": item.path, "ok": item.ok, "content": item.content, "error": item.error}
                for item in results
            ],
            "text": READ_SEPARATOR.join(item.to_text() for item in results),
        }

    return handler


def _write_file_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "write_file")
        content = arguments.get("content")
        if not isinstance(content, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="write_file content must be a string.",
            )
        resolved = sandbox.resolve(path_value)
        fileops.write_text_file(resolved, content)
        return {"path": path_value, "message": f"Successfully wrote to {path_value}"}

    return handler


def _parse_edit_request(arguments: dict[str, object]) -> EditRequest:
    edits_value = arguments.get("edits")
    if not isinstance(edits_value, list):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message="edit_file edits must be an array of {oldText, newText} objects.",
        )
    edits: list[Edit] = []
    for item in edits_value:
        if not isinstance(item, dict):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="edit_file edits must be an array of {oldText, newText} objects.",
            )
        try:
            edits.append(Edit.from_mapping(item))
        except ValueError as error:
            raise ToolDispatchError(code="INVALID_PARAMS", message=str(error)) from error
    dry_run = arguments.get("dryRun", False)
    if not isinstance(dry_run, bool):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message="edit_file dryRun must be a boolean.",
        )
    return EditRequest(edits=tuple(edits), dry_run=dry_run)


def _edit_file_handler(sandbox: PathSandbox, limits: SecurityLimits) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "edit_file")
        request = _parse_edit_request(arguments)
        resolved = sandbox.resolve(path_value)
        enforce_file_size_limit(resolved, limits)
        diff = apply_file_edits(resolved, request.edits, dry_run=request.dry_run)
        return {"path": path_value, "diff": diff, "dry_run": request.dry_run}

    return handler


def _create_directory_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "create_directory")
        resolved = sandbox.resolve(path_value)
        fileops.create_directory(resolved)
        return {"path": path_value, "message": f"Successfully created directory {path_value}"}

    return handler


def _list_directory_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "list_directory")
        resolved = sandbox.resolve(path_value)
        entries = fileops.list_directory(resolved)
        return {"entries": entries, "text": fileops.format_listing(entries)}

    return handler


def _directory_tree_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "directory_tree")
        tree = fileops.directory_tree(sandbox, path_value)
        return {"tree": tree, "text": json.dumps(tree, indent=2)}

    return handler


def _move_file_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        source = _required_string(arguments, "source", "move_file")
        destination = _required_string(arguments, "destination", "move_file")
        resolved_source = sandbox.resolve(source)
        resolved_destination = sandbox.resolve(destination)
        fileops.move_path(resolved_source, resolved_destination)
        return {"message": f"Successfully moved {source} to {destination}"}

    return handler


def _search_files_handler(
    sandbox: PathSandbox,
    limits: SecurityLimits,
    search_config: SearchConfig,
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "search_files")
        pattern = arguments.get("pattern")
        if not isinstance(pattern, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="search_files pattern must be a string.",
            )
        exclude_patterns = _string_list(arguments, "excludePatterns", "search_files")
        root = sandbox.resolve(path_value)
        matches = search_files(
            root,
            pattern,
            [*exclude_patterns, *search_config.default_exclude_patterns],
            sandbox.allow_list,
            max_results=limits.max_search_results,
        )
        text = "\n".join(matches) if matches else NO_MATCHES_TEXT
        return {"matches": matches, "text": text}

    return handler


def _get_file_info_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path_value = _required_string(arguments, "path", "get_file_info")
        resolved = sandbox.resolve(path_value)
        info = fileops.file_info(resolved)
        return {**info, "text": fileops.format_file_info(info)}

    return handler


def _list_allowed_directories_handler(sandbox: PathSandbox) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        directories = sandbox.allow_list.as_strings()
        return {
            "directories": directories,
            "text": "Allowed directories:\n" + "\n".join(directories),
        }

    return handler


def _audit_log_handler(limits: SecurityLimits, read_audit_entries: AuditReader) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", 50)
        tool_value = arguments.get("tool")

        since = since_value if isinstance(since_value, str) else None
        tool = tool_value if isinstance(tool_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else 50
        if limit < 1:
            limit = 1
        if limit > limits.max_search_results:
            limit = limits.max_search_results

        return {"entries": read_audit_entries(since, limit, tool)}

    return handler
