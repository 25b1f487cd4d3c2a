"""
Utility functions for aperture-sync.

This module provides common utility functions used across the application:
    - Ordered fallback chains (try_in_order), shared by the playlist listing
      tiers and the thumbnail candidates
    - Threading utilities for parallel processing
    - Atomic file writes
    - YouTube playlist reference parsing

Usage:
    from aperture_sync.utils import (
        try_in_order,
        run_in_parallel,
        atomic_write_bytes,
        extract_playlist_id,
    )
"""

import os
import stat
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Iterable, Sequence, TypeVar
from urllib.parse import parse_qs, urlparse

from aperture_sync.core.logger import get_logger

logger = get_logger(__name__)

# Read once at import, before any worker thread exists
_UMASK = os.umask(0)
os.umask(_UMASK)


T = TypeVar("T")
R = TypeVar("R")


@dataclass
class TryResult(Generic[T, R]):
    """
    Outcome of an ordered fallback chain.

    Attributes:
        value: Result of the winning attempt, or None if nothing won.
        winner: The candidate that produced value, or None.
        errors: (candidate, exception) for every attempt that raised.
        completed: Candidates whose attempt returned without raising
                   (including rejected results such as an empty list).
    """
    value: R | None = None
    winner: T | None = None
    errors: list[tuple[T, Exception]] = field(default_factory=list)
    completed: list[T] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if some attempt produced an accepted result."""
        return self.winner is not None

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1][1] if self.errors else None


def try_in_order(
    candidates: Iterable[T],
    attempt: Callable[[T], R],
    accept: Callable[[R], bool] = bool
) -> TryResult[T, R]:
    """
    Try candidates strictly in order, stopping at the first accepted result.

    An attempt that raises, or whose result is rejected by accept, advances
    to the next candidate. Nothing is retried.

    Args:
        candidates: Ordered candidates (URLs, listing tiers, ...).
        attempt: Called with one candidate at a time.
        accept: Predicate deciding whether a result wins. Defaults to
                truthiness, so empty lists and empty bodies advance.

    Returns:
        TryResult describing the winner (if any) and every failure.

    Example:
        result = try_in_order(urls, fetch_bytes)
        if result.ok:
            save(result.value)
        else:
            print(f"All failed, last error: {result.last_error}")
    """
    outcome: TryResult[T, R] = TryResult()
    for candidate in candidates:
        try:
            value = attempt(candidate)
        except Exception as e:
            logger.debug(f"Attempt failed for {candidate}: {e}")
            outcome.errors.append((candidate, e))
            continue

        outcome.completed.append(candidate)
        if accept(value):
            outcome.value = value
            outcome.winner = candidate
            return outcome

    return outcome


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If directory cannot be created (permissions, etc.)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def _replacement_mode(path: Path) -> int:
    """Permission bits for a file written at path (mkstemp alone gives 0600)."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_UMASK


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Write data to path so that readers see either the old or the new file.

    The content goes to a temporary file in the same directory, which is
    then renamed over the destination. The result keeps the permissions
    of the file it replaces; a new file gets the umask default.

    Raises:
        OSError: If the temporary file cannot be written or renamed.
    """
    mode = _replacement_mode(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def atomic_write_text(path: Path, text: str) -> None:
    """Text variant of atomic_write_bytes (UTF-8)."""
    atomic_write_bytes(path, text.encode("utf-8"))


def run_in_parallel(
    func: Callable[[T], R],
    items: Sequence[T],
    num_threads: int = 4,
    on_result: Callable[[T, R | Exception], None] | None = None
) -> list[R | Exception]:
    """
    Run a function on multiple items in parallel.

    Args:
        func: Function to call for each item. Takes one argument.
        items: Items to process.
        num_threads: Number of parallel threads.
        on_result: Optional callback invoked on the calling thread as each
                   item finishes (in completion order), e.g. to advance a
                   progress bar.

    Returns:
        One entry per item, in the order of items: the return value, or the
        Exception raised for that item.

    Error Handling:
        Exceptions are caught and returned in place of the result.
        Processing continues for other items.
    """
    results: list[R | Exception] = [None] * len(items)  # type: ignore[list-item]

    with ThreadPoolExecutor(max_workers=max(1, num_threads)) as executor:
        future_to_index = {
            executor.submit(func, item): index
            for index, item in enumerate(items)
        }

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                result = future.result()
            except Exception as e:
                result = e
            results[index] = result
            if on_result is not None:
                on_result(items[index], result)

    return results


def extract_playlist_id(playlist_ref: str) -> str:
    """
    Extract the playlist id from a YouTube URL or return the id as-is.

    Handles:
        - https://www.youtube.com/playlist?list=ID
        - https://www.youtube.com/watch?v=VIDEO&list=ID
        - https://music.youtube.com/playlist?list=ID
        - Just the ID

    Args:
        playlist_ref: Playlist URL or bare id.

    Returns:
        The playlist id. Input that is neither a URL with a 'list'
        parameter nor a bare id is returned stripped, unchanged.

    Examples:
        extract_playlist_id("https://www.youtube.com/playlist?list=PL123&si=x")
        # Returns: "PL123"

        extract_playlist_id("PL123")
        # Returns: "PL123"
    """
    ref = playlist_ref.strip()
    if "://" not in ref and not ref.startswith("www."):
        return ref

    parsed = urlparse(ref if "://" in ref else f"https://{ref}")
    values = parse_qs(parsed.query).get("list")
    if values and values[0]:
        return values[0]
    return ref
