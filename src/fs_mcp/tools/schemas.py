"""Descriptions and JSON input schemas advertised through tools/list."""

from __future__ import annotations

_PATH_ONLY: dict[str, object] = {
    "type": "object",
    "properties": {"path": {"type": "string"}},
    "required": ["path"],
    "additionalProperties": False,
}

TOOL_SCHEMAS: dict[str, tuple[str, dict[str, object]]] = {
    "read_file": (
        "Read the complete contents of a file from the file system. "
        "Only works within allowed directories.",
        _PATH_ONLY,
    ),
    "read_multiple_files": (
        "Read the contents of multiple files at once. Each file's content is "
        "returned with its path as a reference. Failed reads for individual "
        "files won't stop the entire operation. Only works within allowed directories.",
        {
            "type": "object",
            "properties": {"paths": {"type": "array", "items": {"type": "string"}}},
            "required": ["paths"],
            "additionalProperties": False,
        },
    ),
    "write_file": (
        "Create a new file or completely overwrite an existing file with new content. "
        "Only works within allowed directories.",
        {
            "type": "object",
            "properties": {"path": {"type": "string"}, "content": {"type": "string"}},
            "required": ["path", "content"],
            "additionalProperties": False,
        },
    ),
    "edit_file": (
        "Make line-based edits to a text file. Each edit replaces an exact text "
        "sequence, falling back to whitespace-insensitive line matching. Returns a "
        "git-style diff showing the changes made. Only works within allowed directories.",
        {
            "type": "object",
            "properties": {
                "path": {"type": "string"},
                "edits": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "oldText": {
                                "type": "string",
                                "description": "Text to search for - must match exactly",
                            },
                            "newText": {
                                "type": "string",
                                "description": "Text to replace with",
                            },
                        },
                        "required": ["oldText", "newText"],
                        "additionalProperties": False,
                    },
                },
                "dryRun": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview changes using git-style diff format",
                },
            },
            "required": ["path", "edits"],
            "additionalProperties": False,
        },
    ),
    "create_directory": (
        "Create a new directory or ensure a directory exists. The parent directory "
        "must already exist. Succeeds silently if the directory exists. "
        "Only works within allowed directories.",
        _PATH_ONLY,
    ),
    "list_directory": (
        "Get a listing of all files and directories in a path, prefixed with "
        "[FILE] or [DIR]. Only works within allowed directories.",
        _PATH_ONLY,
    ),
    "directory_tree": (
        "Get a recursive tree of files and directories as JSON. Each entry has "
        "'name', 'type' (file/directory), and 'children' for directories. "
        "Only works within allowed directories.",
        _PATH_ONLY,
    ),
    "move_file": (
        "Move or rename files and directories. Fails if the destination exists. "
        "Both source and destination must be within allowed directories.",
        {
            "type": "object",
            "properties": {"source": {"type": "string"}, "destination": {"type": "string"}},
            "required": ["source", "destination"],
            "additionalProperties": False,
        },
    ),
    "search_files": (
        "Recursively search for files and directories whose names contain a "
        "pattern, case-insensitively. Returns full paths to all matching items. "
        "Only searches within allowed directories.",
        {
            "type": "object",
            "properties": {
                "path": {"type": "string"},
                "pattern": {"type": "string"},
                "excludePatterns": {
                    "type": "array",
                    "items": {"type": "string"},
                    "default": [],
                },
            },
            "required": ["path", "pattern"],
            "additionalProperties": False,
        },
    ),
    "get_file_info": (
        "Retrieve metadata about a file or directory: size, creation, modification "
        "and access times, permissions, and type. Only works within allowed directories.",
        _PATH_ONLY,
    ),
    "list_allowed_directories": (
        "Returns the list of directories that this server is allowed to access.",
        {"type": "object", "properties": {}, "required": []},
    ),
    "audit_log": (
        "Return recent sanitized audit log entries for this server.",
        {
            "type": "object",
            "properties": {
                "since": {"type": "string"},
                "limit": {"type": "integer", "minimum": 1},
                "tool": {"type": "string"},
            },
            "required": [],
        },
    ),
}
