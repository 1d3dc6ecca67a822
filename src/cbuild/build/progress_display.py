"""Rich-based live display of a target's compile jobs.

Renders one line per source file that transitions through the compile
states:

    Waiting -> Compiling (spinner) -> Done (checkmark) 0.4s
            -> Cached
            -> Failed (cross) exit code 1

Thread-safe: scheduler worker threads call on_state() concurrently while the
display renders in the main thread.
"""

import threading
import time
from pathlib import Path
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from .compiler import CompileState

# Braille spinner frames for the COMPILING state animation
_SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")


class _FileDisplayState:
    """Display state of one source file."""

    __slots__ = ("source", "state", "cached", "detail", "elapsed", "start_time")

    def __init__(self, source: Path) -> None:
        self.source = source
        self.state = CompileState.UNCHECKED
        self.cached = False
        self.detail = ""
        self.elapsed: float = 0.0
        self.start_time: float | None = None


class CompileProgressDisplay:
    """Live table of compile jobs using Rich.

    Implements CompileProgressCallback.

    Args:
        console: Rich Console instance for rendering. If None, creates a new one.
        target_name: Target name for the header line.
        refresh_per_second: Display refresh rate.
    """

    def __init__(self, console: Console | None, target_name: str, refresh_per_second: int = 10) -> None:
        self._console = console if console is not None else Console()
        self._target_name = target_name
        self._refresh_per_second = refresh_per_second
        self._states: dict[Path, _FileDisplayState] = {}
        self._order: list[Path] = []
        self._lock = threading.Lock()
        self._live: Live | None = None

    def on_state(self, source: Path, state: CompileState, detail: str) -> None:
        """Record a state transition. Thread-safe."""
        with self._lock:
            entry = self._states.get(source)
            if entry is None:
                entry = _FileDisplayState(source)
                self._states[source] = entry
                self._order.append(source)

            if state == CompileState.COMPILING:
                entry.start_time = time.monotonic()
            elif state == CompileState.SKIPPED:
                entry.cached = True

            entry.state = state
            entry.detail = detail
            if entry.start_time is not None:
                entry.elapsed = time.monotonic() - entry.start_time
        if self._live is not None:
            self._live.update(self._render_display())

    def start(self) -> None:
        self._live = Live(
            self._render_display(),
            console=self._console,
            refresh_per_second=self._refresh_per_second,
            transient=False,
        )
        self._live.start()

    def stop(self) -> None:
        if self._live is not None:
            self._live.update(self._render_display())
            self._live.stop()
            self._live = None

    def _render_display(self) -> Group:
        header = Text(f"Building {self._target_name}", style="bold")
        return Group(header, self._render_table(), self._render_footer())

    def _render_table(self) -> Table:
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1), expand=False)
        table.add_column("File", no_wrap=True, min_width=28)
        table.add_column("State", no_wrap=True, min_width=10)
        table.add_column("Status", no_wrap=True)

        with self._lock:
            for source in self._order:
                entry = self._states[source]
                label, style = self._label(entry)
                table.add_row(Text(str(entry.source), style=style), Text(label, style=style), self._format_status(entry))
        return table

    def _render_footer(self) -> Text:
        with self._lock:
            total = len(self._states)
            compiled = sum(1 for s in self._states.values() if s.state == CompileState.COMPLETED and not s.cached)
            cached = sum(1 for s in self._states.values() if s.cached and s.state != CompileState.FAILED)
            failed = sum(1 for s in self._states.values() if s.state == CompileState.FAILED)

        parts = [f"{total} files"]
        if compiled:
            parts.append(f"{compiled} compiled")
        if cached:
            parts.append(f"{cached} cached")
        if failed:
            parts.append(f"{failed} failed")
        return Text(f"  {', '.join(parts)}", style="dim")

    @staticmethod
    def _label(entry: _FileDisplayState) -> tuple[str, str]:
        if entry.state == CompileState.COMPLETED:
            return ("Cached", "dim") if entry.cached else ("Done", "green")
        labels = {
            CompileState.UNCHECKED: ("Waiting", "dim"),
            CompileState.SKIPPED: ("Cached", "dim"),
            CompileState.COMPILING: ("Compiling", "bold cyan"),
            CompileState.FAILED: ("Failed", "red bold"),
        }
        return labels[entry.state]

    @staticmethod
    def _format_status(entry: _FileDisplayState) -> Text:
        if entry.state == CompileState.COMPILING:
            spinner = _SPINNER_FRAMES[int(time.monotonic() * 8) % len(_SPINNER_FRAMES)]
            return Text(spinner, style="cyan")
        if entry.state == CompileState.COMPLETED and not entry.cached:
            return Text(f"✓ {entry.elapsed:.1f}s", style="green")
        if entry.state == CompileState.FAILED:
            return Text(f"✗ {entry.detail or 'Error'}", style="red")
        return Text("")

    def get_snapshot(self) -> list[dict[str, Any]]:
        """Current display states, in registration order, for testing."""
        with self._lock:
            return [
                {
                    "source": self._states[source].source,
                    "state": self._states[source].state,
                    "cached": self._states[source].cached,
                    "detail": self._states[source].detail,
                }
                for source in self._order
            ]

    def __enter__(self) -> "CompileProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
