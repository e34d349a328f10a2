"""Local execution environment: files and shell commands on this machine."""

from __future__ import annotations

import fnmatch
import logging
import os
import signal
import subprocess
import time
from enum import Enum
from pathlib import Path

from coding_agent.environment.types import DirEntry, ExecResult

logger = logging.getLogger(__name__)

# Grace period between SIGTERM and SIGKILL for a timed-out command.
KILL_GRACE_SECONDS = 2.0

SECRET_NAME_PATTERNS = ("*_API_KEY", "*_SECRET", "*_TOKEN", "*_PASSWORD", "*_CREDENTIAL")

CORE_VARIABLES = frozenset({
    "PATH", "HOME", "USER", "SHELL", "LANG", "TERM", "TMPDIR",
    "PYTHONPATH", "VIRTUAL_ENV", "PYENV_ROOT", "RBENV_ROOT",
})


class EnvVarPolicy(Enum):
    """Which of the agent's environment variables a shell command inherits."""

    INHERIT_CORE = "inherit_core"  # everything except secret-looking names
    INHERIT_ALL = "inherit_all"
    INHERIT_NONE = "inherit_none"  # CORE_VARIABLES only


def _is_sensitive(name: str) -> bool:
    upper = name.upper()
    return any(fnmatch.fnmatch(upper, pattern) for pattern in SECRET_NAME_PATTERNS)


def _inherits(policy: EnvVarPolicy, name: str) -> bool:
    if policy is EnvVarPolicy.INHERIT_ALL:
        return True
    if policy is EnvVarPolicy.INHERIT_NONE:
        return name in CORE_VARIABLES
    return not _is_sensitive(name)


def _filter_env(policy: EnvVarPolicy, extra: dict[str, str] | None = None) -> dict[str, str]:
    env = {name: value for name, value in os.environ.items() if _inherits(policy, name)}
    env.update(extra or {})
    return env


def _decode(data: bytes | None) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    try:
        os.killpg(os.getpgid(proc.pid), sig)
    except (ProcessLookupError, PermissionError):
        pass


class LocalExecutionEnvironment:
    """Tool operations against the local filesystem and shell.

    Relative paths resolve against ``working_dir``. Each shell command runs in
    its own process group; with a timeout the whole group is terminated when
    it expires, without one the command runs to completion.
    """

    def __init__(
        self,
        working_dir: str | None = None,
        env_policy: EnvVarPolicy = EnvVarPolicy.INHERIT_CORE,
    ) -> None:
        self._root = Path(working_dir or os.getcwd()).resolve()
        self._env_policy = env_policy

    @property
    def working_directory(self) -> str:
        return str(self._root)

    # --- Files ---

    def resolve_path(self, path: str) -> str:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self._root / candidate
        return os.path.normpath(candidate)

    def _path(self, path: str) -> Path:
        return Path(self.resolve_path(path))

    def read_file(self, path: str) -> str:
        return self._path(path).read_text(encoding="utf-8")

    def write_file(self, path: str, content: str) -> None:
        target = self._path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def file_exists(self, path: str) -> bool:
        return self._path(path).exists()

    def is_directory(self, path: str) -> bool:
        return self._path(path).is_dir()

    def list_directory(self, path: str) -> list[DirEntry]:
        directory = self._path(path)
        if not directory.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        return [
            DirEntry(
                name=child.name,
                path=str(child),
                is_dir=child.is_dir(),
                size=child.stat().st_size if child.is_file() else None,
            )
            for child in sorted(directory.iterdir())
        ]

    # --- Shell ---

    def exec_command(
        self,
        command: str,
        timeout_ms: int | None = None,
        working_dir: str | None = None,
        env_vars: dict[str, str] | None = None,
    ) -> ExecResult:
        cwd = working_dir or str(self._root)
        logger.debug("exec in %s: %s", cwd, command)
        started = time.monotonic()

        proc = subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            env=_filter_env(self._env_policy, env_vars),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
        timed_out = False
        try:
            out, err = proc.communicate(timeout=timeout_ms / 1000.0 if timeout_ms else None)
        except subprocess.TimeoutExpired:
            timed_out = True
            out, err = self._stop(proc)
            logger.warning("command timed out after %dms: %s", timeout_ms, command)

        stderr = _decode(err)
        if timed_out:
            stderr += f"\n[Command timed out after {timeout_ms}ms]"
        return ExecResult(
            stdout=_decode(out),
            stderr=stderr,
            exit_code=-1 if timed_out else proc.returncode,
            timed_out=timed_out,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    @staticmethod
    def _stop(proc: subprocess.Popen) -> tuple[bytes, bytes]:
        """SIGTERM the command's process group, then SIGKILL after the grace period."""
        _signal_group(proc, signal.SIGTERM)
        try:
            return proc.communicate(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            _signal_group(proc, signal.SIGKILL)
            return proc.communicate()
