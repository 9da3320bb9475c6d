"""RangeReporter: resolves control-curve entries to physical time ranges."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from performkit.document import END_DATE_ATTRIBUTES, Element
from performkit.performance import Performance
from performkit.time_base import TimeBase

logger = logging.getLogger(__name__)

#: ``(start_ms, end_ms)`` of one control-curve entry.
PhysicalRange = tuple[float, float]


def _end_date(entry: Element) -> float | None:
    for name in END_DATE_ATTRIBUTES:
        end = entry.number(name)
        if end is not None:
            return end
    return None


class RangeReporter:
    """
    Maps every identified control-curve entry of a performance to its
    physical time range in a rendered score.

    Entries are visited in :meth:`Performance.curve_entries` order. An
    identifier seen twice keeps the range of the later entry. Entries without
    identifier or date, or whose start cannot be resolved, are skipped; an
    unresolvable end falls back to the start.
    """

    def __init__(self, time_base: TimeBase) -> None:
        self.time_base = time_base

    @classmethod
    def for_score(cls, score: Element) -> RangeReporter:
        """Build a reporter whose reference set is the score's rendered notes."""
        return cls(TimeBase.from_document(score))

    def report(self, performance: Performance) -> dict[str, PhysicalRange]:
        ranges: dict[str, PhysicalRange] = {}
        for entry in performance.curve_entries():
            identifier = entry.identifier
            date = entry.symbolic_date
            if identifier is None or date is None:
                continue

            start = self.time_base.resolve(date)
            if start is None:
                continue

            end = start
            end_date = _end_date(entry)
            if end_date is not None:
                resolved = self.time_base.resolve(end_date)
                if resolved is not None:
                    end = resolved

            ranges[identifier] = (start, end)

        logger.info("Resolved %d control-curve range(s)", len(ranges))
        return ranges


def ranges_to_json(ranges: dict[str, PhysicalRange]) -> str:
    """Serialize *ranges* as an indented JSON object of ``[start, end]`` arrays."""
    return json.dumps({key: list(value) for key, value in ranges.items()}, indent=2)


def write_ranges(ranges: dict[str, PhysicalRange], output_path: str | Path) -> None:
    """
    Write *ranges* as JSON, creating missing parent directories.

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(ranges_to_json(ranges))
        fh.write("\n")
