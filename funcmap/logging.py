"""Logging configuration for funcmap.

Logs to stderr so that JSON written to stdout by the CLI stays clean.
Provides tqdm progress bars for batch analysis.
"""

import logging
import os
import sys
import time
from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from tqdm import tqdm

# - FUNCMAP_DISABLE_PROGRESS=1 explicitly disables progress bars
# - Non-TTY stderr also disables them (pipes, CI logs)
_DISABLE_PROGRESS = (
    os.getenv("FUNCMAP_DISABLE_PROGRESS", "").lower() in ("1", "true", "yes")
    or not sys.stderr.isatty()
)

_LOG_LEVEL = logging.getLevelName(os.getenv("FUNCMAP_LOG_LEVEL", "INFO").upper())
if not isinstance(_LOG_LEVEL, int):
    _LOG_LEVEL = logging.INFO

_BAR_FORMAT = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]"

T = TypeVar("T")

logger = logging.getLogger("funcmap")
logger.setLevel(_LOG_LEVEL)

# Only add handler if not already configured
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_LOG_LEVEL)
    formatter = logging.Formatter(
        "[funcmap] %(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


# Quiet runs still get one summary line for batches this large
_ANNOUNCE_THRESHOLD = 100


class TimingContext:
    """Wall-clock duration of a logged operation, in seconds."""

    def __init__(self) -> None:
        self.elapsed: float = 0.0
        self._start: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        self.elapsed = time.perf_counter() - self._start


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Log the start and outcome of an operation with its duration.

    Exceptions are logged and re-raised.

    Example:
        with log_operation("analyze", {"units": 12}) as timing:
            results = analyze_batch(units)
    """
    details_str = ""
    if details:
        details_str = " " + " ".join(f"{k}={v}" for k, v in details.items())
    logger.info("▶ Starting %s%s", operation, details_str)

    ctx = TimingContext()
    ctx.start()
    try:
        yield ctx
    except Exception as e:
        ctx.stop()
        logger.error("✗ %s failed after %.2fs: %s", operation, ctx.elapsed, e)
        raise
    ctx.stop()
    logger.info("✓ Completed %s in %.2fs", operation, ctx.elapsed)


def _bar(desc: str | None, unit: str, **kwargs: Any) -> tqdm:
    return tqdm(
        desc=f"  {desc}" if desc else None,
        unit=unit,
        file=sys.stderr,
        ncols=80,
        leave=False,
        bar_format=_BAR_FORMAT,
        **kwargs,
    )


def progress_bar(items: Sequence[T], desc: str | None = None, unit: str = "it") -> Iterable[T]:
    """Iterate a sequence of work items with a progress bar on stderr.

    Without a bar, large batches are announced with a single log line.
    """
    if _DISABLE_PROGRESS:
        if len(items) > _ANNOUNCE_THRESHOLD:
            logger.info("  %s: processing %d %s...", desc or "Progress", len(items), unit)
        return items
    return _bar(desc, unit, iterable=items)


class ProgressBar:
    """Progress bar updated by hand, for results that arrive out of order.

    Example:
        with ProgressBar(total=len(futures), desc="Analyzing", unit="files") as pbar:
            for future in as_completed(futures):
                pbar.update()
    """

    def __init__(self, total: int, desc: str | None = None, unit: str = "it"):
        self.total = total
        self.desc = desc
        self.unit = unit
        self._pbar: tqdm | None = None
        self._done = 0
        self._timer = TimingContext()

    def __enter__(self) -> "ProgressBar":
        self._timer.start()
        if not _DISABLE_PROGRESS:
            self._pbar = _bar(self.desc, self.unit, total=self.total)
        elif self.total > _ANNOUNCE_THRESHOLD:
            logger.info("  %s: processing %d %s...", self.desc or "Progress", self.total, self.unit)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._pbar is not None:
            self._pbar.close()
            return
        self._timer.stop()
        logger.info(
            "  %s: completed %d %s in %.2fs",
            self.desc or "Progress",
            self._done,
            self.unit,
            self._timer.elapsed,
        )

    def update(self, n: int = 1) -> None:
        self._done += n
        if self._pbar is not None:
            self._pbar.update(n)
