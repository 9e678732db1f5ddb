"""Keep stored next-occurrence dates current as calendar time passes.

When an expected payment date passes without a matching transaction (the
partner's bank isn't connected, a pay run was skipped) the stored date goes
stale. ``advance_occurrence`` rolls a date forward by whole periods until it
is today or later. ``advance_stale_schedules`` applies that to a batch read
and hands each correction to a ``ScheduleWriter`` so the fix is persisted
once per cycle without holding up the read.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Optional, Union

import pandas as pd

from . import config
from .frequency import PERIOD_OFFSETS
from .logging_setup import get_logger
from .models import IncomeSource

logger = get_logger(__name__)

# Runaway guard: very stale dates stop wherever the 200th step lands.
MAX_ADVANCE_ITERATIONS = 200

DateLike = Union[str, date, None]
PersistCallback = Callable[[str, DateLike], Any]


def advance_occurrence(
    stored_date: DateLike,
    frequency: Optional[str],
    today: Optional[date] = None,
) -> DateLike:
    """Advance ``stored_date`` by ``frequency`` periods until it is >= today.

    Null, unparseable or already-current dates and unknown frequencies are
    returned unchanged. String input gives an ISO ``YYYY-MM-DD`` string back,
    ``date`` input gives a ``date``.

    Example:
        >>> advance_occurrence('2024-01-01', 'weekly', today=date(2024, 1, 20))
        '2024-01-22'
    """
    if not stored_date or not frequency:
        return stored_date
    offset = PERIOD_OFFSETS.get(frequency)
    if offset is None:
        return stored_date
    parsed = _parse_date(stored_date)
    if parsed is None:
        return stored_date

    floor = pd.Timestamp(_parse_date(today) or config.current_date())
    current = pd.Timestamp(parsed)
    iterations = 0
    while current < floor and iterations < MAX_ADVANCE_ITERATIONS:
        try:
            current = current + offset
        except (OverflowError, ValueError):
            break
        iterations += 1

    if iterations == 0:
        return stored_date
    advanced = current.date()
    return advanced.isoformat() if isinstance(stored_date, str) else advanced


def is_stale(stored_date: DateLike, today: Optional[date] = None) -> bool:
    """True when ``stored_date`` parses and falls strictly before today."""
    parsed = _parse_date(stored_date)
    if parsed is None:
        return False
    return parsed < (_parse_date(today) or config.current_date())


def advance_stale_schedules(
    sources: Iterable[IncomeSource],
    writer: Optional['ScheduleWriter'] = None,
    today: Optional[date] = None,
) -> List[IncomeSource]:
    """Return ``sources`` with stale next-expected dates rolled forward.

    Each source whose date actually changed is submitted to ``writer`` for
    persistence. Submission never blocks and its outcome never reaches the
    caller; failures are only logged by the writer.
    """
    reference = _parse_date(today) or config.current_date()
    corrected: List[IncomeSource] = []
    for source in sources or []:
        if not is_stale(source.next_expected_date, reference):
            corrected.append(source)
            continue
        advanced = advance_occurrence(source.next_expected_date, source.frequency, today=reference)
        if advanced == source.next_expected_date:
            corrected.append(source)
            continue
        if writer is not None:
            writer.submit(source.id, advanced)
        corrected.append(replace(source, next_expected_date=advanced))
    return corrected


class ScheduleWriter:
    """Background worker that persists corrected schedule dates.

    Corrections are queued onto a small thread pool and written through
    ``persist(source_id, corrected_date)``. Writes are attempted once: a
    raised exception or a ``False`` outcome is logged with the source id and
    dropped. At most ``max_pending`` corrections wait at any time; further
    submissions are discarded with a warning instead of blocking the reader.
    """

    def __init__(
        self,
        persist: PersistCallback,
        *,
        max_pending: Optional[int] = None,
        max_workers: int = 1,
    ) -> None:
        self._persist = persist
        if max_pending is None:
            max_pending = config.WRITER_MAX_PENDING
        if max_pending < 1:
            raise ValueError(f"max_pending must be at least 1, got {max_pending}")
        self.max_pending = max_pending
        self._slots = threading.BoundedSemaphore(self.max_pending)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='schedule-writer')
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, source_id: str, corrected_date: DateLike) -> bool:
        """Queue a write. Returns False when the request was dropped."""
        if self._closed:
            logger.warning("Schedule writer closed; dropping correction for %s", source_id)
            return False
        if not self._slots.acquire(blocking=False):
            logger.warning("Schedule writer queue full; dropping correction for %s", source_id)
            return False
        try:
            self._executor.submit(self._write, source_id, corrected_date)
        except RuntimeError:
            self._slots.release()
            logger.warning("Schedule writer shut down; dropping correction for %s", source_id)
            return False
        return True

    def close(self, wait: bool = True) -> None:
        """Stop accepting work; with ``wait`` block until queued writes finish."""
        self._closed = True
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'ScheduleWriter':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close(wait=True)

    def _write(self, source_id: str, corrected_date: DateLike) -> Any:
        try:
            outcome = self._persist(source_id, corrected_date)
        except Exception:
            logger.exception("Failed to advance next expected date for %s", source_id)
            return None
        finally:
            self._slots.release()
        if outcome is False:
            logger.warning("Next expected date for %s was not updated", source_id)
        return outcome


def _parse_date(value: DateLike) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = pd.to_datetime(text, errors='coerce')
    except (ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()
