# process.py
from __future__ import annotations

import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import BinaryIO, Optional, TextIO

from .errors import CommandFailure
from .settings import SHELL
from .ui.console import Console, get_console


def _describe_returncode(code: int) -> str:
    if code < 0:
        try:
            return f"signal: {signal.Signals(-code).name}"
        except ValueError:
            return f"signal: {-code}"
    return f"exit status {code}"


def _open_sink(output_path: Path | None, label: str, console: Console) -> Optional[BinaryIO]:
    """
    Open the combined output file in append mode.

    A file that cannot be opened is reported and the command runs without it.
    """
    if output_path is None:
        return None
    try:
        return open(output_path, "ab")
    except OSError as e:
        console.print_warning(f"Output sink unavailable for step '{label}', running without it: {e}")
        return None


def _echo_bytes(echo: TextIO, chunk: bytes) -> None:
    """Write raw bytes to a console stream, as an inherited descriptor would get them."""
    raw = getattr(echo, "buffer", None)
    if raw is None:
        echo.write(chunk.decode(errors="replace"))
        echo.flush()
        return
    echo.flush()
    raw.write(chunk)
    raw.flush()


def _pump(pipe: BinaryIO, sink: BinaryIO, sink_lock: threading.Lock, echo: Optional[TextIO]) -> None:
    """Copy one process stream into the sink and, unless silent, to the console stream."""
    try:
        # read1 hands over partial lines (progress output) as soon as they arrive
        for chunk in iter(lambda: pipe.read1(65536), b""):
            with sink_lock:
                sink.write(chunk)
                sink.flush()
            if echo is not None:
                _echo_bytes(echo, chunk)
    finally:
        pipe.close()


def _run_teed(argv: list[str], sink: BinaryIO, silent: bool) -> int:
    proc = subprocess.Popen(argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    sink_lock = threading.Lock()
    pumps = [
        threading.Thread(target=_pump, args=(proc.stdout, sink, sink_lock, None if silent else sys.stdout)),
        threading.Thread(target=_pump, args=(proc.stderr, sink, sink_lock, None if silent else sys.stderr)),
    ]
    for t in pumps:
        t.daemon = True
        t.start()
    code = proc.wait()
    for t in pumps:
        t.join()
    return code


def _run_direct(argv: list[str], silent: bool) -> int:
    target = subprocess.DEVNULL if silent else None
    proc = subprocess.run(argv, stdout=target, stderr=target)
    return proc.returncode


def run_command(
    command: str,
    *,
    label: str,
    silent: bool = False,
    output_path: Path | None = None,
    console: Console | None = None,
    shell: str = SHELL,
) -> None:
    """
    Run one command through `<shell> -c`.

    stdout/stderr go to the caller's streams (or nowhere when silent) and,
    when output_path is given, are appended to that file as well. The file
    is opened for this command only and closed before returning.

    Raises:
      CommandFailure on a non-zero exit, a signal, or a spawn error.
    """
    console = console or get_console()
    console.print_info(f"Executing step: {label}: {command}")

    argv = [shell, "-c", command]
    sink = _open_sink(output_path, label, console)
    try:
        try:
            if sink is not None:
                code = _run_teed(argv, sink, silent)
            else:
                code = _run_direct(argv, silent)
        except OSError as e:
            failure = CommandFailure(task=label, command=command, exit_code=None, reason=str(e))
            console.print_failure(label, str(failure))
            raise failure from e
    finally:
        if sink is not None:
            sink.close()

    if code != 0:
        failure = CommandFailure(
            task=label,
            command=command,
            exit_code=code,
            reason=_describe_returncode(code),
        )
        console.print_failure(label, str(failure))
        raise failure
