"""SelectionEngine: keep notes by identifier, prune to their window, re-origin physical time."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from performkit.document import (
    DATE,
    END_DATE_ATTRIBUTES,
    MILLISECONDS_DATE,
    NOTE,
    Element,
    has_attribute,
    of_kind,
    query,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """
    Symbolic date range spanned by the kept notes.

    Both bounds are None when no kept note carries a readable date.
    """

    min_date: float | None = None
    max_date: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.min_date is None or self.max_date is None


@dataclass
class SelectionResult:
    """
    Summary of one :meth:`SelectionEngine.apply` pass.

    Attributes:
        window:          Window derived from the kept notes.
        kept:            Notes whose identifier is in the keep-set.
        dropped:         Notes detached because of their identifier.
        removed_by_date: Dated elements detached for lying past the window.
        clamped:         End-date attributes pulled back to the window end.
        offset:          Milliseconds subtracted during re-origin (0.0 if none).
    """

    window: TimeWindow
    kept: int = 0
    dropped: int = 0
    removed_by_date: int = 0
    clamped: int = 0
    offset: float = 0.0


def reorigin(root: Element) -> float:
    """
    Shift every ``milliseconds.date`` under *root* so the earliest becomes 0.

    Results below zero are clamped to zero. Returns the subtracted offset, or
    0.0 when there was nothing to shift.
    """
    timed = [
        (element, millis)
        for element in list(query(root, has_attribute(MILLISECONDS_DATE)))
        if (millis := element.physical_date) is not None
    ]
    if not timed:
        return 0.0

    offset = min(millis for _, millis in timed)
    if offset == 0.0:
        return 0.0

    for element, millis in timed:
        element.set_attribute(MILLISECONDS_DATE, max(0.0, millis - offset))
    return offset


class SelectionEngine:
    """
    Filters a performed score to a keep-set of note identifiers.

    Algorithm (all mutations happen on materialized match lists)
    ------------------------------------------------------------
    1. Partition all notes into *kept* (identifier in the keep-set) and
       *dropped* (no identifier, or not in the keep-set); detach *dropped*.
    2. Derive the :class:`TimeWindow` from the kept notes' dates. Without a
       window the pass stops here.
    3. Detach every dated element whose date lies after the window end.
       Nothing is removed before the window start.
    4. Clamp end-date attributes that reach past the window end.
    5. Re-origin physical time so the earliest surviving onset is 0 ms.

    An empty keep-set means "no filtering": :meth:`apply` leaves the tree
    untouched.
    """

    def __init__(self, keep_ids: Iterable[str] | None = None) -> None:
        self.keep_ids = frozenset(keep_ids or ())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _partition(self, root: Element) -> tuple[list[Element], list[Element]]:
        kept: list[Element] = []
        dropped: list[Element] = []
        for note in list(query(root, of_kind(NOTE))):
            if note.identifier in self.keep_ids:
                kept.append(note)
            else:
                dropped.append(note)
        return kept, dropped

    def _derive_window(self, kept: list[Element]) -> TimeWindow:
        dates = [date for note in kept if (date := note.symbolic_date) is not None]
        if not dates:
            return TimeWindow()
        return TimeWindow(min_date=min(dates), max_date=max(dates))

    def _prune_after(self, root: Element, max_date: float) -> int:
        late = [
            element
            for element in list(query(root, has_attribute(DATE)))
            if (date := element.symbolic_date) is not None and date > max_date
        ]
        for element in late:
            element.detach()
        return len(late)

    def _clamp_end_dates(self, root: Element, max_date: float) -> int:
        clamped = 0
        intervals = list(query(root, lambda e: any(a in e.attributes for a in END_DATE_ATTRIBUTES)))
        for element in intervals:
            for name in END_DATE_ATTRIBUTES:
                end = element.number(name)
                if end is not None and end > max_date:
                    element.set_attribute(name, max_date)
                    clamped += 1
        return clamped

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def apply(self, root: Element) -> SelectionResult:
        """
        Filter and renormalize the tree under *root* in place.

        Returns:
            SelectionResult describing what was changed.
        """
        if not self.keep_ids:
            logger.debug("Empty keep-set; selection skipped.")
            return SelectionResult(window=TimeWindow())

        kept, dropped = self._partition(root)
        logger.info("Total notes before filtering: %d", len(kept) + len(dropped))
        for note in dropped:
            note.detach()

        window = self._derive_window(kept)
        result = SelectionResult(window=window, kept=len(kept), dropped=len(dropped))
        logger.info("minDate: %s, maxDate: %s", window.min_date, window.max_date)
        max_date = window.max_date
        if max_date is None:
            logger.info("No kept note carries a date; window pruning skipped.")
            return result

        result.removed_by_date = self._prune_after(root, max_date)
        logger.info("Removed %d elements with date > maxDate (%s)", result.removed_by_date, max_date)
        result.clamped = self._clamp_end_dates(root, max_date)
        result.offset = reorigin(root)
        if result.offset:
            logger.info("Shifted physical onsets by -%s ms", result.offset)
        return result


def parse_keep_ids(text: str | None) -> list[str]:
    """
    Split a comma-separated identifier list.

    Items are trimmed, empty items dropped and duplicates removed, keeping
    the first occurrence's position.
    """
    if text is None:
        return []
    ids: dict[str, None] = {}
    for item in text.split(","):
        item = item.strip()
        if item:
            ids.setdefault(item, None)
    if not ids:
        logger.warning("Identifier list given but parsed empty; no filtering will be done.")
    return list(ids)
