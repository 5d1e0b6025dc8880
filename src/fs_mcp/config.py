"""Configuration loading and deterministic merge order.

Nothing here is read from inside an allowed directory: tool calls can
write there, so both the config file and the data directory must live
outside every root.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from fs_mcp.security import AllowList, SecurityLimits
from fs_mcp.security.sandbox import expand_home, normalize, to_absolute

DATA_DIR_NAME = ".fs_mcp"

MAX_FILE_BYTES_CAP = 100 * 1024 * 1024
MAX_TOTAL_BYTES_PER_RESPONSE_CAP = 128 * 1024 * 1024
MAX_SEARCH_RESULTS_CAP = 100_000
MAX_BATCH_PATHS_CAP = 1_000


class ConfigError(ValueError):
    """Raised when startup configuration cannot be used."""


@dataclass(slots=True, frozen=True)
class SearchConfig:
    """Search defaults merged into every search_files request."""

    default_exclude_patterns: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    allow_list: AllowList
    data_dir: Path
    limits: SecurityLimits
    search: SearchConfig


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    max_file_bytes: int | None = None
    max_total_bytes_per_response: int | None = None
    max_search_results: int | None = None
    max_batch_paths: int | None = None


def build_allow_list(directories: Sequence[str]) -> AllowList:
    """Validate that every root exists and is a directory, then freeze them."""
    if not directories:
        raise ConfigError(
            "Usage: fs-mcp <allowed-directory> [additional-directories...]"
        )
    for directory in directories:
        candidate = Path(expand_home(directory))
        if not candidate.exists():
            raise ConfigError(f"Error accessing directory {directory}: no such directory")
        if not candidate.is_dir():
            raise ConfigError(f"Error: {directory} is not a directory")
    return AllowList.from_directories(directories)


def is_inside_allow_list(path: Path, allow_list: AllowList) -> bool:
    """Check both the lexical and the symlink-free form of path."""
    lexical = normalize(to_absolute(expand_home(str(path))))
    real = Path(os.path.realpath(lexical))
    return allow_list.contains(lexical) or allow_list.contains(real)


def default_config(allow_list: AllowList) -> ServerConfig:
    """Build default config for a given allow-list."""
    return ServerConfig(
        allow_list=allow_list,
        data_dir=Path.home() / DATA_DIR_NAME,
        limits=SecurityLimits(),
        search=SearchConfig(),
    )


def load_config_file(config_path: Path | None, allow_list: AllowList) -> dict[str, object]:
    """Load the explicit --config file; without one the defaults apply."""
    if config_path is None:
        return {}
    if not config_path.exists():
        raise ConfigError(f"Config file does not exist: {config_path}")
    if is_inside_allow_list(config_path, allow_list):
        raise ConfigError(
            f"Config file {config_path} is inside an allowed directory; "
            "move it outside every allowed directory."
        )
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{config_path.name} must contain a top-level table.")
    return payload

def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def merge_config(
    base: ServerConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    limits_payload = _get_table(file_payload, "limits")
    search_payload = _get_table(file_payload, "search")
    server_payload = _get_table(file_payload, "server")

    if "allowed_directories" in server_payload:
        raise ValueError(
            "Config field 'server.allowed_directories' is not supported; "
            "allowed directories are fixed by the command line."
        )

    limits = SecurityLimits(
        max_file_bytes=_optional_positive_int_with_cap(
            limits_payload.get("max_file_bytes"),
            "limits.max_file_bytes",
            base.limits.max_file_bytes,
            MAX_FILE_BYTES_CAP,
        ),
        max_total_bytes_per_response=_optional_positive_int_with_cap(
            limits_payload.get("max_total_bytes_per_response"),
            "limits.max_total_bytes_per_response",
            base.limits.max_total_bytes_per_response,
            MAX_TOTAL_BYTES_PER_RESPONSE_CAP,
        ),
        max_search_results=_optional_positive_int_with_cap(
            limits_payload.get("max_search_results"),
            "limits.max_search_results",
            base.limits.max_search_results,
            MAX_SEARCH_RESULTS_CAP,
        ),
        max_batch_paths=_optional_positive_int_with_cap(
            limits_payload.get("max_batch_paths"),
            "limits.max_batch_paths",
            base.limits.max_batch_paths,
            MAX_BATCH_PATHS_CAP,
        ),
    )

    exclude_patterns = base.search.default_exclude_patterns
    if "default_exclude_patterns" in search_payload:
        exclude_patterns = _tuple_of_strings(
            search_payload["default_exclude_patterns"], "search", "default_exclude_patterns"
        )

    data_dir = base.data_dir
    if "data_dir" in server_payload:
        raw_data_dir = server_payload["data_dir"]
        if not isinstance(raw_data_dir, str) or not raw_data_dir:
            raise ValueError("Config field 'server.data_dir' must be a non-empty string.")
        data_dir = Path(os.path.expanduser(raw_data_dir))

    merged = ServerConfig(
        allow_list=base.allow_list,
        data_dir=data_dir,
        limits=limits,
        search=SearchConfig(default_exclude_patterns=exclude_patterns),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    limits = SecurityLimits(
        max_file_bytes=_optional_positive_int_with_cap(
            overrides.max_file_bytes,
            "overrides.max_file_bytes",
            config.limits.max_file_bytes,
            MAX_FILE_BYTES_CAP,
        ),
        max_total_bytes_per_response=_optional_positive_int_with_cap(
            overrides.max_total_bytes_per_response,
            "overrides.max_total_bytes_per_response",
            config.limits.max_total_bytes_per_response,
            MAX_TOTAL_BYTES_PER_RESPONSE_CAP,
        ),
        max_search_results=_optional_positive_int_with_cap(
            overrides.max_search_results,
            "overrides.max_search_results",
            config.limits.max_search_results,
            MAX_SEARCH_RESULTS_CAP,
        ),
        max_batch_paths=_optional_positive_int_with_cap(
            overrides.max_batch_paths,
            "overrides.max_batch_paths",
            config.limits.max_batch_paths,
            MAX_BATCH_PATHS_CAP,
        ),
    )
    data_dir = (overrides.data_dir or config.data_dir).resolve()
    if is_inside_allow_list(data_dir, config.allow_list):
        raise ConfigError(
            f"Data directory {data_dir} is inside an allowed directory; "
            "pass --data-dir outside every allowed directory."
        )
    return ServerConfig(
        allow_list=config.allow_list,
        data_dir=data_dir,
        limits=limits,
        search=config.search,
    )


def load_effective_config(
    directories: Sequence[str],
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
) -> ServerConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    allow_list = build_allow_list(directories)
    base = default_config(allow_list)
    payload = load_config_file(config_path, allow_list)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
