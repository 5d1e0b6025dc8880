"""JSON-lines stdio transport for the filesystem tools.

Each input line is one request object::

    {"id": "1", "method": "tools/call", "params": {"name": "read_file", "arguments": {...}}}

``method`` may also be ``tools/list`` or a bare tool name, in which case
``params`` are the tool arguments. Each output line is one envelope with
``request_id``, ``ok``, ``result``, ``blocked`` and, on failure, ``error``.
"""

from __future__ import annotations

import argparse
import itertools
import json
import sys
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from fs_mcp.config import CliOverrides, ConfigError, ServerConfig, load_effective_config
from fs_mcp.editing import EditNotFoundError
from fs_mcp.logging import AuditEvent, JsonlAuditLogger, sanitize_arguments, utc_timestamp
from fs_mcp.security import (
    AccessDeniedError,
    ParentMissingError,
    PathSandbox,
    PolicyBlockedError,
    SecurityLimits,
)
from fs_mcp.tools.builtin import register_builtin_tools
from fs_mcp.tools.registry import ToolDispatchError, ToolRegistry

SERVER_NAME = "secure-filesystem-server"
SERVER_VERSION = "0.2.0"

LIST_METHOD = "tools/list"
CALL_METHOD = "tools/call"


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(
        prog="fs-mcp",
        usage="fs-mcp <allowed-directory> [additional-directories...]",
    )
    parser.add_argument("directories", nargs="*")
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--max-file-bytes", type=int, required=False, default=None)
    parser.add_argument("--max-total-bytes-per-response", type=int, required=False, default=None)
    parser.add_argument("--max-search-results", type=int, required=False, default=None)
    parser.add_argument("--max-batch-paths", type=int, required=False, default=None)
    return parser


def envelope(
    request_id: str,
    result: dict[str, object] | None = None,
    error: tuple[str, str] | None = None,
    blocked: bool = False,
) -> dict[str, object]:
    """Build the response envelope; ``error`` is a ``(code, message)`` pair."""
    response: dict[str, object] = {
        "request_id": request_id,
        "ok": error is None,
        "result": result if result is not None else {},
        "blocked": blocked,
    }
    if error is not None:
        code, message = error
        response["error"] = {"code": code, "message": f"Error: {message}"}
    return response


def blocked_envelope(request_id: str, reason: str, hint: str) -> dict[str, object]:
    return envelope(
        request_id,
        result={"reason": reason, "hint": hint},
        error=("PATH_BLOCKED", reason),
        blocked=True,
    )


def unpack_request(payload: object) -> tuple[str, dict[str, object]]:
    """Return ``(tool name or tools/list, arguments)`` from a request object.

    Raises ToolDispatchError for malformed requests.
    """
    if not isinstance(payload, dict):
        raise ToolDispatchError(code="INVALID_REQUEST", message="Request must be an object.")
    method = payload.get("method")
    params = payload.get("params", {})
    if not isinstance(method, str) or not method:
        raise ToolDispatchError(
            code="INVALID_REQUEST", message="Request method must be a non-empty string."
        )
    if not isinstance(params, dict):
        raise ToolDispatchError(code="INVALID_PARAMS", message="Request params must be an object.")
    if method != CALL_METHOD:
        return method, params

    name = params.get("name")
    arguments = params.get("arguments", {})
    if not isinstance(name, str) or not name:
        raise ToolDispatchError(
            code="INVALID_PARAMS", message="tools/call params.name must be a non-empty string."
        )
    if not isinstance(arguments, dict):
        raise ToolDispatchError(
            code="INVALID_PARAMS", message="tools/call params.arguments must be an object."
        )
    return name, arguments


class StdioServer:
    """Routes JSON-line requests to the registered filesystem tools."""

    def __init__(self, config: ServerConfig) -> None:
        self._config = config
        self._sandbox = PathSandbox(config.allow_list)
        self._audit_logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            sandbox=self._sandbox,
            limits=config.limits,
            search_config=config.search,
            read_audit_entries=self._audit_logger.read,
        )
        self._fallback_ids = itertools.count(1)

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer every non-blank input line with exactly one output line."""
        for raw_line in in_stream:
            if not raw_line.strip():
                continue
            response = self.handle_json_line(raw_line)
            out_stream.write(json.dumps(response, sort_keys=True) + "\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            started = time.perf_counter()
            request_id = self._fallback_id()
            response = envelope(request_id, error=("INVALID_JSON", "Request must be valid JSON."))
            arguments = {"raw_line_length": len(raw_line)}
            self._audit(request_id, "invalid_json", arguments, response, started)
            return response
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        """Run one parsed request; every failure becomes an envelope."""
        started = time.perf_counter()
        request_id = self._request_id(payload)
        try:
            tool_name, arguments = unpack_request(payload)
        except ToolDispatchError as error:
            response = envelope(request_id, error=(error.code, error.message))
            self._audit(request_id, "invalid_request", {}, response, started)
            return response

        if tool_name == LIST_METHOD:
            return envelope(
                request_id, result={"tools": [spec.to_dict() for spec in self._registry.specs()]}
            )

        response = self.dispatch(request_id, tool_name, arguments)
        self._audit(request_id, tool_name, arguments, response, started)
        return response

    def dispatch(
        self, request_id: str, tool_name: str, arguments: dict[str, object]
    ) -> dict[str, object]:
        """Run one tool and map its failure, if any, to an error code."""
        try:
            result = self._registry.dispatch(name=tool_name, arguments=arguments)
        except (AccessDeniedError, PolicyBlockedError) as error:
            return blocked_envelope(request_id, error.reason, error.hint)
        except ParentMissingError as error:
            return envelope(request_id, error=("PARENT_MISSING", error.reason))
        except EditNotFoundError as error:
            return envelope(request_id, error=("EDIT_NOT_FOUND", error.reason))
        except ToolDispatchError as error:
            return envelope(request_id, error=(error.code, error.message))
        except (OSError, UnicodeDecodeError) as error:
            return envelope(request_id, error=("IO_ERROR", str(error)))
        except Exception:
            return envelope(
                request_id,
                error=("INTERNAL_ERROR", "Unhandled server error while executing tool."),
            )

        response = envelope(request_id, result=result)
        size = len(json.dumps(response, sort_keys=True).encode("utf-8"))
        if size > self._config.limits.max_total_bytes_per_response:
            return blocked_envelope(
                request_id,
                "Response exceeds max_total_bytes_per_response limit.",
                "Request fewer files or a narrower search.",
            )
        return response

    def _request_id(self, payload: object) -> str:
        value = payload.get("id") if isinstance(payload, dict) else None
        if isinstance(value, str) and value:
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return self._fallback_id()

    def _fallback_id(self) -> str:
        return f"req-{next(self._fallback_ids):06d}"

    def _audit(
        self,
        request_id: str,
        tool_name: str,
        arguments: dict[str, object],
        response: dict[str, object],
        started: float,
    ) -> None:
        """Record one sanitized event; a failed write is reported on stderr only."""
        error = response.get("error")
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            tool=tool_name,
            ok=bool(response["ok"]),
            blocked=bool(response["blocked"]),
            error_code=error["code"] if isinstance(error, dict) else None,
            duration_ms=round((time.perf_counter() - started) * 1000, 3),
            metadata=sanitize_arguments(arguments),
        )
        try:
            self._audit_logger.append(event)
        except OSError as write_error:
            print(f"Audit log write failed: {write_error}", file=sys.stderr)


def create_server(
    allowed_directories: Sequence[str],
    limits: SecurityLimits | None = None,
    data_dir: str | None = None,
    config_path: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance.

    Raises ConfigError when any allowed directory is missing or not a
    directory, or when the config file or data directory lies inside one.
    """
    overrides = cli_overrides or CliOverrides()
    if limits is not None or data_dir is not None:
        overrides = CliOverrides(
            data_dir=Path(data_dir) if data_dir is not None else overrides.data_dir,
            max_file_bytes=limits.max_file_bytes if limits else overrides.max_file_bytes,
            max_total_bytes_per_response=(
                limits.max_total_bytes_per_response
                if limits
                else overrides.max_total_bytes_per_response
            ),
            max_search_results=(
                limits.max_search_results if limits else overrides.max_search_results
            ),
            max_batch_paths=limits.max_batch_paths if limits else overrides.max_batch_paths,
        )
    config = load_effective_config(
        directories=list(allowed_directories),
        config_path=Path(config_path) if config_path is not None else None,
        overrides=overrides,
    )
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the filesystem server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=Path(args.data_dir) if args.data_dir is not None else None,
        max_file_bytes=args.max_file_bytes,
        max_total_bytes_per_response=args.max_total_bytes_per_response,
        max_search_results=args.max_search_results,
        max_batch_paths=args.max_batch_paths,
    )
    try:
        server = create_server(
            allowed_directories=args.directories,
            config_path=args.config,
            cli_overrides=overrides,
        )
    except (ConfigError, ValueError) as error:
        print(str(error), file=sys.stderr)
        return 1

    print(f"{SERVER_NAME} {SERVER_VERSION} running on stdio", file=sys.stderr)
    print(
        "Allowed directories: " + ", ".join(server.config.allow_list.as_strings()),
        file=sys.stderr,
    )
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
