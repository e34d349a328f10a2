"""Execution environment abstraction and the local implementation."""

from coding_agent.environment.local import EnvVarPolicy, LocalExecutionEnvironment
from coding_agent.environment.types import DirEntry, ExecResult, ExecutionEnvironment

__all__ = [
    "DirEntry",
    "EnvVarPolicy",
    "ExecResult",
    "ExecutionEnvironment",
    "LocalExecutionEnvironment",
]
