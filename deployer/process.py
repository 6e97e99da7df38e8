"""Subprocess seam for the external tools the pipeline drives."""

import logging
import os
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """The tool's own error text, falling back to stdout."""
        return (self.stderr or self.stdout).strip()


def command_env(
    profile: str | None = None, extra: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Build a child-process environment bound to an AWS profile.

    The parent environment is copied, never modified.
    """
    env = dict(os.environ)
    if profile:
        env["AWS_PROFILE"] = profile
    if extra:
        env.update(extra)
    return env


def run_command(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    capture: bool = True,
    interactive: bool = False,
    timeout: float | None = None,
) -> CommandResult:
    """Run an external command and return its result.

    Args:
        command: Program and arguments.
        cwd: Working directory.
        env: Full child environment (see :func:`command_env`).
        capture: Capture stdout. When False, stdout streams to the terminal
            and only stderr is captured (then echoed) so the tool's
            diagnostic is still available to the caller.
        interactive: Inherit stdin/stdout/stderr entirely (e.g. SSO login).
        timeout: Seconds before the command is killed.

    Returns:
        CommandResult. A missing executable is reported as returncode 127.
    """
    cmd_display = " ".join(command)
    logger.debug("Running: %s", cmd_display)

    try:
        if interactive:
            completed = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env is not None else None,
                check=False,
                timeout=timeout,
            )
            return CommandResult(command=cmd_display, returncode=completed.returncode)

        completed = subprocess.run(
            list(command),
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            check=False,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        return CommandResult(command=cmd_display, returncode=127, stderr=str(e))
    except subprocess.TimeoutExpired:
        return CommandResult(
            command=cmd_display,
            returncode=124,
            stderr=f"Command timed out after {timeout} seconds",
        )

    if not capture and completed.stderr:
        sys.stderr.write(completed.stderr)

    return CommandResult(
        command=cmd_display,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
