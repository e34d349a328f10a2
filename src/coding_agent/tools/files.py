"""File tools: read, list, and edit files through the execution environment."""

from __future__ import annotations

import logging
from typing import Any

from coding_agent.environment.types import ExecutionEnvironment
from coding_agent.tools.base import Tool, schema

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10


class ReadFile(Tool):
    description = (
        "Read the contents of a given relative file path. Use this when you want "
        "to see what's inside a file. Do not use this with directory names."
    )
    parameters = schema(
        required=("path",),
        path="The relative path of a file in the working directory.",
    )

    def __init__(self, env: ExecutionEnvironment) -> None:
        self.env = env

    def execute(self, path: str) -> Any:
        try:
            return self.env.read_file(path)
        except (OSError, UnicodeDecodeError) as exc:
            return {"error": str(exc)}


def normalize_max_depth(max_depth: Any) -> int | None:
    """Coerce max_depth to a non-negative int, or None if it is not one.

    Accepts ints and numeric strings. Booleans and floats are rejected.
    """
    if isinstance(max_depth, bool):
        return None
    if isinstance(max_depth, int):
        return max_depth if max_depth >= 0 else None
    if not isinstance(max_depth, str):
        return None
    try:
        parsed = int(max_depth.strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


class ListFiles(Tool):
    description = (
        "Recursively list files and directories at a given path. "
        "If no path is provided, lists files in the current directory."
    )
    parameters = schema(
        path="Optional relative path to list files from. Defaults to current directory if not provided.",
        max_depth={
            "type": "integer",
            "description": "Maximum depth to recurse into directories",
        },
    )

    def __init__(self, env: ExecutionEnvironment) -> None:
        self.env = env

    def execute(self, path: str = "", max_depth: Any = DEFAULT_MAX_DEPTH) -> Any:
        root = self.env.resolve_path(path or ".")
        if not self.env.is_directory(root):
            return {"error": "Path does not exist"}

        depth = normalize_max_depth(max_depth)
        if depth is None:
            return {"error": "Invalid max_depth: must be a non-negative integer"}

        results: list[str] = []
        self._walk(root, results, 0, depth)
        return results

    def _walk(self, path: str, results: list[str], current_depth: int, max_depth: int) -> None:
        for entry in self.env.list_directory(path):
            # shell-glob semantics: hidden entries are not listed
            if entry.name.startswith("."):
                continue
            if entry.is_dir:
                results.append(f"{entry.path}/")
                if current_depth < max_depth:
                    self._walk(entry.path, results, current_depth + 1, max_depth)
            else:
                results.append(entry.path)


class EditFile(Tool):
    description = """
        Make edits to a text file.

        Replaces 'old_str' with 'new_str' in the given file.
        'old_str' and 'new_str' MUST be different from each other.

        If the file specified with path doesn't exist, it will be created.
    """
    parameters = schema(
        required=("path", "old_str", "new_str"),
        path="The path to the file",
        old_str="Text to search for - must match exactly and must only have one match exactly",
        new_str="Text to replace old_str with",
    )

    def __init__(self, env: ExecutionEnvironment) -> None:
        self.env = env

    def execute(self, path: str, old_str: str, new_str: str) -> Any:
        logger.info("Editing file: %s", path)
        try:
            content = self.env.read_file(path) if self.env.file_exists(path) else ""
            replaced = old_str in content
            self.env.write_file(path, content.replace(old_str, new_str, 1))
        except (OSError, UnicodeDecodeError) as exc:
            return {"error": str(exc)}
        return {"success": True, "path": self.env.resolve_path(path), "replaced": replaced}
