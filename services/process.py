"""Child-process execution for the installer and the configuration tool."""
from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from platform_setup.logging_config import get_logger
from services.errors import LaunchError

logger = get_logger("process")


@dataclass
class ToolResult:
    command: Sequence[str]
    exit_code: int
    output: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ToolRunner(Protocol):
    def run(
        self,
        executable: Path | str,
        args: Sequence[str],
        *,
        working_dir: Path | None = None,
        timeout: float | None = None,
    ) -> ToolResult:  # pragma: no cover - protocol
        ...


class SubprocessToolRunner:
    """Runs a tool to completion, capturing stdout and stderr together."""

    def run(
        self,
        executable: Path | str,
        args: Sequence[str],
        *,
        working_dir: Path | None = None,
        timeout: float | None = None,
    ) -> ToolResult:
        cmd = [str(executable), *args]
        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                check=False,
                cwd=str(working_dir) if working_dir else None,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise LaunchError(f"{Path(str(executable)).name} did not finish within {timeout} seconds") from exc
        except OSError as exc:
            raise LaunchError(f"Unable to start {executable}: {exc}") from exc
        logger.debug("%s exited with code %s", Path(str(executable)).name, completed.returncode)
        return ToolResult(cmd, completed.returncode, completed.stdout or "")
