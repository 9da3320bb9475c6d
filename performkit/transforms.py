"""ExpressiveTransform: Strategy pattern for scaling control-curve fields of a performance."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator

from performkit.document import Element
from performkit.performance import (
    BPM,
    FRAME_LENGTH,
    INTENSITY,
    NAME_REF,
    RUBATO_MAP,
    TEMPO_MAP,
    TEMPORAL_SPREAD,
    TRANSITION_TO,
    Performance,
)

logger = logging.getLogger(__name__)

#: Rubato intensity with no expressive deviation; held fixed by scaling.
NEUTRAL_RUBATO_INTENSITY = 1.0


def scale_tempo_pair(bpm: float, transition_to: float, factor: float) -> tuple[float, float]:
    """
    Stretch a tempo transition around its mean by ``factor + 1``.

    Example: ``(100, 140)`` with factor 0.5 → mean 120 → ``(90, 150)``.
    """
    mean = (bpm + transition_to) / 2.0
    scale = factor + 1.0
    return mean + (bpm - mean) * scale, mean + (transition_to - mean) * scale


def scale_rubato_intensity(intensity: float, factor: float) -> float:
    """Stretch the distance from the neutral intensity 1.0 by ``factor + 1``."""
    return (intensity - NEUTRAL_RUBATO_INTENSITY) * (factor + 1.0) + NEUTRAL_RUBATO_INTENSITY


def scale_frame_length(frame_length: float, factor: float) -> float:
    return frame_length * (factor + 1.0)


# ── Abstract base ────────────────────────────────────────────────────────────

class ExpressiveTransform(ABC):
    """
    Abstract Strategy for one parameterized expressive scaling.

    Subclasses pick their target elements from a :class:`Performance` and
    rewrite fields of each target independently. A factor of 0 leaves every
    field unchanged. Factors are expected to be validated (finite,
    non-negative) before a transform is built.
    """

    #: Short label used in logs.
    name = "transform"

    def __init__(self, factor: float) -> None:
        self.factor = factor

    def __repr__(self) -> str:
        return f"{type(self).__name__}(factor={self.factor!r})"

    @abstractmethod
    def targets(self, performance: Performance) -> Iterator[Element]:
        """Yield the elements this transform may rewrite."""

    @abstractmethod
    def transform(self, element: Element) -> bool:
        """
        Rewrite the fields of one target in place.

        Returns:
            True if the element was changed, False if it did not apply.
        """

    def apply(self, performance: Performance) -> int:
        """Run the transform over every target; returns the number of rewritten elements."""
        changed = sum(1 for element in list(self.targets(performance)) if self.transform(element))
        logger.debug("%s x%s rewrote %d element(s)", self.name, self.factor + 1.0, changed)
        return changed


# ── Concrete strategies ──────────────────────────────────────────────────────

class TempoScale(ExpressiveTransform):
    """
    Exaggerate tempo transitions.

    Applies to tempo entries carrying both ``bpm`` and ``transition.to``;
    static tempo markers are left alone. The mean of the two values is the
    pivot and never moves.
    """

    name = "tempo"

    def targets(self, performance: Performance) -> Iterator[Element]:
        return performance.curve_entries(TEMPO_MAP)

    def transform(self, element: Element) -> bool:
        bpm = element.number(BPM)
        transition_to = element.number(TRANSITION_TO)
        if bpm is None or transition_to is None:
            return False
        new_bpm, new_to = scale_tempo_pair(bpm, transition_to, self.factor)
        element.set_attribute(BPM, new_bpm)
        element.set_attribute(TRANSITION_TO, new_to)
        return True


class RubatoIntensityScale(ExpressiveTransform):
    """Exaggerate rubato intensity around the neutral value 1.0."""

    name = "rubato"

    def targets(self, performance: Performance) -> Iterator[Element]:
        return performance.curve_entries(RUBATO_MAP)

    def transform(self, element: Element) -> bool:
        intensity = element.number(INTENSITY)
        if intensity is None:
            if element.has_attribute(NAME_REF):
                # Intensity comes from a rubatoDef; definitions are not rewritten.
                logger.debug(
                    "Skipping rubato %s: intensity via name.ref=%r", element.identifier, element.get(NAME_REF)
                )
            return False
        element.set_attribute(INTENSITY, scale_rubato_intensity(intensity, self.factor))
        return True


class OrnamentSpreadScale(ExpressiveTransform):
    """
    Widen the temporal spread of ornaments.

    Targets the ``temporalSpread`` of every ornament definition found in the
    ornamentation styles of the global and part headers, and multiplies its
    ``frameLength`` by ``factor + 1``.
    """

    name = "temporalSpread"

    def targets(self, performance: Performance) -> Iterator[Element]:
        for definition in performance.ornament_defs():
            for child in definition.children:
                if child.kind == TEMPORAL_SPREAD:
                    yield child

    def transform(self, element: Element) -> bool:
        frame_length = element.number(FRAME_LENGTH)
        if frame_length is None:
            return False
        element.set_attribute(FRAME_LENGTH, scale_frame_length(frame_length, self.factor))
        return True
