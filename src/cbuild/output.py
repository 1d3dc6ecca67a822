"""
Centralized console output for cbuild.

All user-facing progress lines are prefixed with the elapsed time since
program launch in MM:SS.cc format (minutes:seconds.centiseconds), which
makes it easy to see where a build spends its time.

Example output:
    00:00.01 [1/3] Discovering sources for main...
    00:00.02 [Compiling]: src/main.c
    00:00.31 [Linking]: main
    00:00.35 Build time: 0.35s

Usage:
    from cbuild.output import log, log_compile, log_link, init_timer

    init_timer()
    log_compile(Path("src/main.c"))
    log_link(Path("main"))

Debug detail (full command lines, staleness decisions) goes through the
logging module instead; this module is only for what a user should see.
"""

import sys
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, TextIO

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = False
_lock = threading.Lock()


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    If not called explicitly, it will be called automatically on first log.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout at write time)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable verbose-only messages."""
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Elapsed time in seconds since timer initialization."""
    if _start_time is None:
        init_timer(_output_stream)
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    # Compile jobs log from worker threads; keep each line whole.
    line = f"{format_timestamp()} {message}\n"
    stream = _output_stream if _output_stream is not None else sys.stdout
    with _lock:
        stream.write(line)
        stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """Log a build phase message as "[N/M] message"."""
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """Log an indented detail line."""
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_compile(source: Path) -> None:
    _print(f"[Compiling]: {source}")


def log_cached(source: Path) -> None:
    """Log a source whose object is reused (verbose only)."""
    if not _verbose:
        return
    _print(f"[Cached]: {source}")


def log_link(artifact: Path) -> None:
    _print(f"[Linking]: {artifact}")


def log_up_to_date(artifact: Path) -> None:
    _print(f"{artifact} is up to date")


def log_build_complete(build_time: float, verbose_only: bool = False) -> None:
    """Log build completion time."""
    if verbose_only and not _verbose:
        return
    _print(f"Build time: {build_time:.2f}s")


def log_error(message: str) -> None:
    _print(f"ERROR: {message}")


class TimedLogger:
    """
    Context manager for logging with elapsed time tracking.

    Usage:
        with TimedLogger("Compiling main", phase=(2, 3)) as logger:
            ...
            logger.detail("4 files compiled")
        # Logs "Done (1.23s)" when the block exits without an exception
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)
