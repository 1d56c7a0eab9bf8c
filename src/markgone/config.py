"""Project configuration loading for Markgone.

Only the site builder and watch mode read configuration; the conversion
functions take everything as arguments.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from markgone.errors import MarkgoneConfigError

CONFIG_FILENAME = "markgone.toml"


@dataclass(frozen=True)
class PathsConfig:
    source_dir: str
    output_dir: str
    suffixes: list[str]


@dataclass(frozen=True)
class MarkgoneConfig:
    version: int
    paths: PathsConfig
    links: dict[str, str]

    def source_path(self, root: Path) -> Path:
        return root / self.paths.source_dir

    def output_path(self, root: Path) -> Path:
        return root / self.paths.output_dir


def find_project_root(start: Path) -> Path:
    """Walk upward from `start` (file or directory) looking for `markgone.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent

    raise MarkgoneConfigError(
        f"Could not find {CONFIG_FILENAME} by walking upward from start path."
    )


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MarkgoneConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise MarkgoneConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MarkgoneConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise MarkgoneConfigError(f"Expected {name} to be a string.")
    return value


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> MarkgoneConfig:
    """Load and validate `markgone.toml`.

    If neither `root` nor `config_path` are provided, the project root is
    discovered by walking upward from the current working directory.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
        config_path = root / CONFIG_FILENAME
    elif root is None:
        root = config_path.parent

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise MarkgoneConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise MarkgoneConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MarkgoneConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise MarkgoneConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise MarkgoneConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise MarkgoneConfigError(f"Unsupported config version: {version_i} (expected 1).")

    paths_tbl = _as_table(data.get("paths"), name="paths")
    links_tbl = _as_table(data.get("links"), name="links")

    if "source_dir" in paths_tbl:
        source_dir = _as_str(paths_tbl["source_dir"], name="paths.source_dir")
    else:
        source_dir = "docs"

    if "output_dir" in paths_tbl:
        output_dir = _as_str(paths_tbl["output_dir"], name="paths.output_dir")
    else:
        output_dir = "site"

    if "suffixes" in paths_tbl:
        suffixes = _as_str_list(paths_tbl["suffixes"], name="paths.suffixes")
    else:
        suffixes = [".txt"]

    links = {str(k): _as_str(v, name=f"links.{k}") for k, v in links_tbl.items()}

    # Validation
    if not (root / source_dir).is_dir():
        raise MarkgoneConfigError(
            f"Invalid config: paths.source_dir {source_dir!r} does not exist under the project root."
        )

    if not suffixes or any(not s.startswith(".") or len(s) < 2 for s in suffixes):
        raise MarkgoneConfigError(
            'Invalid config: paths.suffixes must be non-empty and look like ".txt".'
        )

    if ".html" in suffixes:
        raise MarkgoneConfigError("Invalid config: paths.suffixes may not include .html.")

    if Path(source_dir) == Path(output_dir):
        raise MarkgoneConfigError(
            "Invalid config: paths.output_dir must differ from paths.source_dir."
        )

    return MarkgoneConfig(
        version=version_i,
        paths=PathsConfig(source_dir=source_dir, output_dir=output_dir, suffixes=suffixes),
        links=links,
    )
