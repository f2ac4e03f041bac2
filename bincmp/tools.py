#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Run an external provider and hand its stdout over one line at a time."""

import logging
import subprocess
import tempfile
from typing import Iterator, Sequence

from .errors import ToolError

logger = logging.getLogger(__name__)


def run_tool(command: Sequence[str]) -> Iterator[str]:
    """
    Yield stdout lines of `command` without the trailing newline.

    Output is read incrementally so large symbol tables are never held as
    one string. stderr goes to a temporary file, so a chatty provider can
    never block on a full pipe. A missing executable or a non-zero exit
    status raises ToolError once the stream is exhausted.

    Bytes that are not valid UTF-8 come through as backslash escapes.
    """
    command = [str(c) for c in command]
    logger.debug(f"Running: {' '.join(command)}")
    with tempfile.TemporaryFile() as err:
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=err,
                text=True,
                encoding="utf-8",
                errors="backslashreplace",
            )
        except FileNotFoundError as e:
            raise ToolError(command, "command not found") from e
        except OSError as e:
            raise ToolError(command, f"failed to start: {e}") from e

        with proc:
            for line in proc.stdout:
                yield line.rstrip("\r\n")
            returncode = proc.wait()

        if returncode != 0:
            err.seek(0)
            stderr = err.read().decode("utf-8", errors="replace").strip()
            msg = stderr.splitlines()[-1] if stderr else f"exit status {returncode}"
            raise ToolError(command, msg)
