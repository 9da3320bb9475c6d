"""TimeBase: maps symbolic dates to physical milliseconds by nearest-neighbour lookup."""

from collections.abc import Iterable

import numpy as np

from performkit.document import MILLISECONDS_DATE, NOTE, Element, all_of, has_attribute, of_kind, query


class TimeBase:
    """
    Nearest-neighbour bridge between the symbolic and physical time bases.

    Built once from a reference set of elements that carry both a symbolic
    ``date`` and a ``milliseconds.date``; elements missing either (or
    carrying a malformed value) are left out.

    The reported physical date is always one of the reference samples, never
    an interpolation. Ties are broken by the first sample in document order
    (``numpy.argmin`` returns the first minimum).
    """

    def __init__(self, references: Iterable[Element]) -> None:
        symbolic: list[float] = []
        physical: list[float] = []
        for element in references:
            date = element.symbolic_date
            millis = element.physical_date
            if date is None or millis is None:
                continue
            symbolic.append(date)
            physical.append(millis)
        self._symbolic = np.asarray(symbolic, dtype=float)
        self._physical = np.asarray(physical, dtype=float)

    @classmethod
    def from_document(cls, root: Element) -> "TimeBase":
        """Use every rendered note (``note[@milliseconds.date]``) under *root* as reference."""
        return cls(query(root, all_of(of_kind(NOTE), has_attribute(MILLISECONDS_DATE))))

    def __len__(self) -> int:
        return int(self._symbolic.size)

    def resolve(self, symbolic_date: float) -> float | None:
        """Return the physical date of the sample closest to *symbolic_date*, or None."""
        if self._symbolic.size == 0:
            return None
        index = int(np.argmin(np.abs(self._symbolic - symbolic_date)))
        return float(self._physical[index])


def resolve_physical(symbolic_date: float, references: Iterable[Element]) -> float | None:
    """One-shot form of :meth:`TimeBase.resolve` over an arbitrary reference set."""
    return TimeBase(references).resolve(symbolic_date)
