"""One-shot external command execution with forgiving failure semantics."""

from __future__ import annotations

import subprocess
from typing import Sequence

from .logging_setup import get_logger


DEFAULT_TIMEOUT_S = 30.0


def run_command(path: str, args: Sequence[str] = (), timeout_s: float | None = DEFAULT_TIMEOUT_S) -> str:
    """Run ``path`` with ``args`` to completion and return its stdout as text.

    Any failure to spawn or finish the command yields an empty string. Callers
    treat empty output as "no data".
    """
    logger = get_logger()
    argv = [path, *args]
    try:
        completed = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            timeout=timeout_s,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.debug("command timed out: %s", " ".join(argv), extra={"event": "command_timeout"})
        return ""
    except OSError as exc:
        logger.debug("command failed to start: %s (%s)", " ".join(argv), exc, extra={"event": "command_spawn_error"})
        return ""

    return completed.stdout.decode("utf-8", errors="replace")
