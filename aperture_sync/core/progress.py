"""
Rich progress bars for the two long stages of a sync.

    Thumbnails      ✓ 45  ↷ 120  ✗ 2        ━━━━━━━━━━━━━━━━━  47%
    Catalog [Music] ~ 12  - 1  × 2  + 5     ━━━━━━━━━━━━━━━━━ 100%

Each bar keeps named counters and shows them as colored symbols next to
the description. Playlist fetching has no bar.

Usage:
    from aperture_sync.core.progress import ThumbnailProgressBar

    with ThumbnailProgressBar(total=len(items)) as progress:
        for item in items:
            path, cached = acquire(item)
            progress.update(success=path is not None, cached=cached)
"""

from abc import ABC, abstractmethod
from typing import Optional

from rich import get_console
from rich.console import OverflowMethod
from rich.progress import BarColumn, Progress, ProgressColumn, Task, TaskID
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(64,148,201)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(64,148,201)",
    "progress.percentage": "white",
})


class FixedWidthColumn(ProgressColumn):
    """Markup text column padded or cut to an exact width."""

    def __init__(self, template: str, width: int, overflow: OverflowMethod = "ellipsis") -> None:
        super().__init__()
        self.template = template
        self.width = width
        self.overflow = overflow

    def render(self, task: Task) -> Text:
        text = Text.from_markup(self.template.format(task=task))
        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class BaseProgressBar(ABC):
    """
    A single-task Rich progress bar with named counters.

    Subclasses declare COUNTERS as (name, symbol, style) triples and turn
    their update() arguments into a counter name for _advance().
    Counters that are not declared only move the bar.
    """

    COUNTERS: tuple[tuple[str, str, str], ...] = ()

    def __init__(self, total: int, description: str, status_width: int = 40) -> None:
        self.total = total
        self.description = description
        self.completed = 0
        self.counts = {name: 0 for name, _, _ in self.COUNTERS}

        self.console = get_console()
        self.progress = Progress(
            FixedWidthColumn("[white]{task.description}", width=15),
            FixedWidthColumn("{task.fields[status]}", width=status_width),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            refresh_per_second=10,
        )
        self.task_id: Optional[TaskID] = None

    def __enter__(self) -> "BaseProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if self.task_id is not None:
            return
        self.console.push_theme(PROGRESS_THEME)
        self.progress.start()
        self.task_id = self.progress.add_task(
            self.description, total=self.total, status=self.status_text()
        )

    def stop(self) -> None:
        if self.task_id is None:
            return
        self.progress.stop()
        self.console.pop_theme()
        self.task_id = None

    def status_text(self) -> str:
        """Counters as Rich markup; zero counters after the first two are hidden."""
        parts = []
        for index, (name, symbol, style) in enumerate(self.COUNTERS):
            value = self.counts[name]
            if index < 2 or value:
                parts.append(f"[{style}]{symbol} {value}[/{style}]")
        return "  ".join(parts)

    def _advance(self, counter: str | None) -> None:
        self.completed += 1
        if counter in self.counts:
            self.counts[counter] += 1
        if self.task_id is not None:
            self.progress.update(self.task_id, completed=self.completed, status=self.status_text())

    @abstractmethod
    def update(self, *args, **kwargs) -> None:
        """Record one finished item."""


class ThumbnailProgressBar(BaseProgressBar):
    """✓ downloaded, ↷ already cached, ✗ fell back to a remote URL."""

    COUNTERS = (
        ("downloaded", "✓", "green"),
        ("cached", "↷", "cyan"),
        ("failed", "✗", "red"),
    )

    def __init__(self, total: int, description: str = "Thumbnails") -> None:
        super().__init__(total=total, description=description)

    @property
    def downloaded(self) -> int:
        return self.counts["downloaded"]

    @property
    def cached(self) -> int:
        return self.counts["cached"]

    @property
    def failed(self) -> int:
        return self.counts["failed"]

    def update(self, success: bool, cached: bool = False) -> None:
        """
        Args:
            success: A local file is available.
            cached: The file was already there, nothing was downloaded.
        """
        if not success:
            self._advance("failed")
        else:
            self._advance("cached" if cached else "downloaded")


class CatalogProgressBar(BaseProgressBar):
    """~ updated, - tag removed, × deleted, + added."""

    COUNTERS = (
        ("updated", "~", "white"),
        ("retired", "-", "yellow"),
        ("deleted", "×", "red"),
        ("inserted", "+", "green"),
    )

    def __init__(self, total: int, description: str = "Catalog") -> None:
        super().__init__(total=total, description=description)

    def status_text(self) -> str:
        return "  ".join(
            f"[{style}]{symbol} {self.counts[name]}[/{style}]"
            for name, symbol, style in self.COUNTERS
        )

    def update(self, action: str) -> None:
        """Record one reconciler action ('skipped' only moves the bar)."""
        self._advance(action)
