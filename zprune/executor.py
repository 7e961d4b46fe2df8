"""Executor protocol and implementations (local, SSH)."""
from __future__ import annotations

import shlex
import subprocess
from typing import Protocol, runtime_checkable


class ExecutorError(Exception):
    """Raised when a command cannot be started or exits with a non-zero status."""
    def __init__(self, cmd: list[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command {shlex.join(cmd)!r} exited {returncode}: {stderr.strip()}"
        )


@runtime_checkable
class Executor(Protocol):
    @property
    def label(self) -> str:
        """Short label for display (e.g. 'local', 'ssh://host')."""
        raise NotImplementedError

    def run(self, cmd: list[str]) -> str:
        """Run a command, return stdout. Raise ExecutorError on failure."""
        raise NotImplementedError


def _run(cmd: list[str]) -> str:
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        raise ExecutorError(cmd, 127, str(e)) from e
    if result.returncode != 0:
        raise ExecutorError(cmd, result.returncode, result.stderr)
    return result.stdout


class LocalExecutor:
    """Run commands on the local machine."""

    @property
    def label(self) -> str:
        return "local"

    def run(self, cmd: list[str]) -> str:
        return _run(cmd)


class SSHExecutor:
    """Run commands on a remote host via SSH."""

    def __init__(self, host: str, user: str | None = None, port: int = 22):
        self.host = host
        self.user = user
        self.port = port

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host

    @property
    def label(self) -> str:
        return f"ssh://{self.destination}:{self.port}"

    def _ssh_prefix(self) -> list[str]:
        return [
            "ssh",
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=accept-new",
            "-p", str(self.port),
            self.destination,
        ]

    def run(self, cmd: list[str]) -> str:
        return _run(self._ssh_prefix() + [shlex.join(cmd)])
