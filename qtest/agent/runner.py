"""Adapter for the external coding-agent CLI (Cline by default)."""

from __future__ import annotations

import os
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, Sequence

from ..config import DEFAULT_AGENT, DEFAULT_MAX_BUFFER, DEFAULT_TIMEOUT, AgentConfig
from ..errors import AgentExecutionError

# Non-interactive, auto-approve, JSON event stream on stdout.
DEFAULT_AGENT_ARGS: tuple[str, ...] = ("--yolo", "--output-format", "json")

PROBE_TIMEOUT = 10.0

# Seconds between output-size checks while the agent runs.
POLL_INTERVAL = 0.05


@dataclass
class AgentOutput:
    """Captured output of a finished agent run."""

    stdout: str
    stderr: str


class AgentRunner:
    """Runs one agent task inside a working directory and captures its output."""

    def __init__(
        self,
        *,
        executable: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_buffer: int = DEFAULT_MAX_BUFFER,
        arguments: Sequence[str] = DEFAULT_AGENT_ARGS,
    ) -> None:
        self.executable = executable or DEFAULT_AGENT
        self.timeout = timeout
        self.max_buffer = max_buffer
        self.arguments = tuple(arguments)

    @classmethod
    def from_config(cls, config: AgentConfig) -> "AgentRunner":
        return cls(
            executable=config.executable,
            timeout=config.timeout,
            max_buffer=config.max_buffer,
        )

    def build_args(self, prompt: str) -> list[str]:
        return [self.executable, *self.arguments, prompt]

    def run(self, prompt: str, *, cwd: Path) -> AgentOutput:
        """Execute the agent in ``cwd``.

        Output is spooled to temporary files whose combined size is polled
        while the agent runs; the process is killed as soon as it passes
        ``max_buffer`` bytes or the timeout.

        Raises:
            AgentExecutionError: the binary cannot be started, exits non-zero,
                times out, or writes more than ``max_buffer`` bytes.
        """
        with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
            try:
                process = subprocess.Popen(
                    self.build_args(prompt),
                    cwd=str(cwd),
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=err,
                )
            except FileNotFoundError as exc:
                raise AgentExecutionError(
                    f"Unable to locate agent executable '{self.executable}'."
                ) from exc
            except OSError as exc:
                raise AgentExecutionError(
                    f"Unable to start agent executable '{self.executable}': {exc}"
                ) from exc

            try:
                returncode = self._wait(process, out, err)
            finally:
                if process.poll() is None:
                    process.kill()
                    process.wait()

            stdout = _read_spool(out)
            stderr = _read_spool(err)

        if returncode != 0:
            message = stderr.strip() or stdout.strip() or str(returncode)
            raise AgentExecutionError(
                f"Agent failed with exit code {returncode}: {message[:500]}"
            )
        return AgentOutput(stdout=stdout, stderr=stderr)

    def _wait(self, process: subprocess.Popen, out: IO[bytes], err: IO[bytes]) -> int:
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                returncode = process.wait(timeout=POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                returncode = None
            size = _spool_size(out) + _spool_size(err)
            if size > self.max_buffer:
                raise AgentExecutionError(
                    f"Agent output exceeded the {self.max_buffer} byte buffer ({size} bytes)"
                )
            if returncode is not None:
                return returncode
            if time.monotonic() >= deadline:
                raise AgentExecutionError(f"Agent timed out after {self.timeout:g} seconds")

    def probe(self) -> Dict[str, object]:
        """Check whether the agent binary can be executed."""
        try:
            completed = subprocess.run(
                [self.executable, "--version"],
                check=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=PROBE_TIMEOUT,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            return {"available": False, "error": f"'{self.executable}' not found on PATH"}
        except subprocess.TimeoutExpired:
            return {"available": False, "error": "version check timed out"}
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
            return {"available": False, "error": detail}
        except OSError as exc:
            return {"available": False, "error": f"'{self.executable}' cannot be executed: {exc}"}
        version = (completed.stdout or "").strip().splitlines()
        return {"available": True, "version": version[0] if version else None}


def _spool_size(spool: IO[bytes]) -> int:
    return os.fstat(spool.fileno()).st_size


def _read_spool(spool: IO[bytes]) -> str:
    spool.seek(0)
    return spool.read().decode("utf-8", errors="replace")


__all__ = ["AgentOutput", "AgentRunner", "DEFAULT_AGENT_ARGS"]
