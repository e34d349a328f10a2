"""What tools need from the machine they act on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ExecResult:
    """Captured output of one shell command. A timed-out command has exit_code -1."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: str  # absolute
    is_dir: bool
    size: int | None = None  # bytes, files only


class ExecutionEnvironment(Protocol):
    """Filesystem and shell access for the built-in tools.

    Relative paths are taken from ``working_directory``. The local
    implementation is the only one shipped; a container or remote host
    would slot in without touching tool code.
    """

    @property
    def working_directory(self) -> str: ...

    def resolve_path(self, path: str) -> str: ...

    def read_file(self, path: str) -> str: ...

    def write_file(self, path: str, content: str) -> None: ...

    def file_exists(self, path: str) -> bool: ...

    def is_directory(self, path: str) -> bool: ...

    def list_directory(self, path: str) -> list[DirEntry]: ...

    def exec_command(
        self,
        command: str,
        timeout_ms: int | None = None,
        working_dir: str | None = None,
        env_vars: dict[str, str] | None = None,
    ) -> ExecResult: ...
