"""Progress callback protocol for the compile scheduler.

Defines the callback interface the scheduler uses to report per-file state
transitions to a display layer.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from .compiler import CompileState


@runtime_checkable
class CompileProgressCallback(Protocol):
    """Protocol for receiving per-file compile state updates.

    Called from scheduler worker threads; implementations must be
    thread-safe.
    """

    def on_state(self, source: Path, state: CompileState, detail: str) -> None:
        """Called whenever a file changes state.

        Args:
            source: Source file the job compiles.
            state: New state of the job.
            detail: Human-readable detail (e.g. the failure message).
        """
        ...


class NullCallback:
    """No-op callback for tests and non-interactive use."""

    def on_state(self, source: Path, state: CompileState, detail: str) -> None:
        pass
