"""Tests for running external providers."""

import sys
import threading

import pytest

from bincmp.errors import ToolError
from bincmp.tools import run_tool


def test_streams_stdout_lines():
    lines = list(run_tool([sys.executable, "-c", "print('first'); print('second')"]))
    assert lines == ["first", "second"]


def test_is_lazy():
    # nothing is started until the generator is consumed
    gen = run_tool(["bincmp-no-such-tool"])
    with pytest.raises(ToolError, match="command not found"):
        next(gen)


def test_non_zero_exit_reports_stderr():
    script = "import sys; print('partial'); sys.stderr.write('bad input\\n'); sys.exit(2)"
    gen = run_tool([sys.executable, "-c", script])
    assert next(gen) == "partial"
    with pytest.raises(ToolError) as exc:
        list(gen)
    assert "bad input" in str(exc.value)
    assert exc.value.command[0] == sys.executable


def test_non_zero_exit_without_stderr():
    with pytest.raises(ToolError, match="exit status 3"):
        list(run_tool([sys.executable, "-c", "import sys; sys.exit(3)"]))


def test_large_stderr_does_not_block():
    script = "import sys; sys.stderr.write('w' * 200000); print('sym')"
    result = []
    worker = threading.Thread(
        target=lambda: result.extend(run_tool([sys.executable, "-c", script])), daemon=True)
    worker.start()
    worker.join(timeout=10)
    assert not worker.is_alive()
    assert result == ["sym"]


def test_large_stderr_on_failure_keeps_last_line():
    script = "import sys; sys.stderr.write('w' * 200000 + '\\nfatal: truncated file\\n'); sys.exit(1)"
    with pytest.raises(ToolError, match="fatal: truncated file"):
        list(run_tool([sys.executable, "-c", script]))


def test_undecodable_bytes_stay_distinct():
    script = (
        "import sys; "
        "sys.stdout.buffer.write(b'0 8 T name\\xff\\n0 8 T name\\xfe\\n'); "
        "sys.stdout.flush()"
    )
    lines = list(run_tool([sys.executable, "-c", script]))
    assert lines == ["0 8 T name\\xff", "0 8 T name\\xfe"]
