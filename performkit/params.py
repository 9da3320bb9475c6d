"""ModifyParams: the parameter document driving expressive modifications."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Final

from performkit.errors import ParameterError
from performkit.performance import Performance
from performkit.transforms import (
    ExpressiveTransform,
    OrnamentSpreadScale,
    RubatoIntensityScale,
    TempoScale,
)

logger = logging.getLogger(__name__)

# Factors accepted in the parameter document but not backed by an operator.
UNSUPPORTED_FACTORS: Final[frozenset[str]] = frozenset(
    {
        "increase.dynamics",
        "exaggerate.dynamics",
        "exaggerate.dynamicsGradient",
        "exaggerate.relativeVelocity",
        "exaggerate.relativeDuration",
    }
)


def _read_factor(section: dict[str, Any], key: str, dotted: str) -> float | None:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParameterError(f"{dotted} must be a number, got {value!r}.")
    try:
        return float(value)
    except OverflowError as exc:
        raise ParameterError(f"{dotted} must be a non-negative finite number.") from exc


@dataclass
class Increase:
    tempo: float | None = None
    dynamics: float | None = None


@dataclass
class Exaggerate:
    rubato: float | None = None
    tempo: float | None = None
    dynamics: float | None = None
    temporalSpread: float | None = None
    dynamicsGradient: float | None = None
    relativeVelocity: float | None = None
    relativeDuration: float | None = None


@dataclass
class ModifyParams:
    """
    Scaling factors grouped as in the JSON parameter document::

        {"increase": {"tempo": 0.5},
         "exaggerate": {"rubato": 0.4, "temporalSpread": 0.2}}

    Missing sections and keys are allowed; unknown keys are ignored.
    """

    increase: Increase | None = None
    exaggerate: Exaggerate | None = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> ModifyParams:
        """
        Raises:
            ParameterError: If a section is not an object or a factor is not a number.
        """
        if not isinstance(data, dict):
            raise ParameterError("Parameter document must be a JSON object.")

        sections: dict[str, Any] = {}
        for name, section_type in (("increase", Increase), ("exaggerate", Exaggerate)):
            raw = data.get(name)
            if raw is None:
                sections[name] = None
                continue
            if not isinstance(raw, dict):
                raise ParameterError(f"{name} must be a JSON object.")
            sections[name] = section_type(
                **{f.name: _read_factor(raw, f.name, f"{name}.{f.name}") for f in fields(section_type)}
            )
        return cls(**sections)

    @classmethod
    def from_json(cls, text: str) -> ModifyParams:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParameterError(f"Parameter document is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> ModifyParams:
        """Read a parameter document from *path* (OSError propagates)."""
        with open(path, encoding="utf-8") as fh:
            return cls.from_json(fh.read())

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def factors(self) -> dict[str, float]:
        """Every given factor keyed by its dotted name, in document order."""
        given: dict[str, float] = {}
        for name in ("increase", "exaggerate"):
            section = getattr(self, name)
            if section is None:
                continue
            for f in fields(section):
                value = getattr(section, f.name)
                if value is not None:
                    given[f"{name}.{f.name}"] = value
        return given

    def validate(self) -> None:
        """
        Raises:
            ParameterError: If no factor is given, or one is negative or not finite.
        """
        factors = self.factors()
        if not factors:
            raise ParameterError("Params JSON must contain at least one factor.")
        for dotted, value in factors.items():
            if not math.isfinite(value) or value < 0:
                raise ParameterError(f"{dotted} must be a non-negative finite number.")

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def build_transforms(self) -> list[tuple[str, ExpressiveTransform]]:
        """Return ``(dotted_name, transform)`` pairs in application order."""
        factors = self.factors()
        for dotted in sorted(factors.keys() & UNSUPPORTED_FACTORS):
            logger.warning("%s is not supported yet and will be ignored.", dotted)

        transforms: list[tuple[str, ExpressiveTransform]] = []
        if "increase.tempo" in factors:
            transforms.append(("increase.tempo", TempoScale(factors["increase.tempo"])))
        if "exaggerate.tempo" in factors:
            transforms.append(("exaggerate.tempo", TempoScale(factors["exaggerate.tempo"])))
        if "exaggerate.rubato" in factors:
            transforms.append(("exaggerate.rubato", RubatoIntensityScale(factors["exaggerate.rubato"])))
        if "exaggerate.temporalSpread" in factors:
            transforms.append(
                ("exaggerate.temporalSpread", OrnamentSpreadScale(factors["exaggerate.temporalSpread"]))
            )
        return transforms


def apply_modifications(performance: Performance, params: ModifyParams) -> dict[str, int]:
    """
    Validate *params* and apply its transforms to *performance* in place.

    Returns:
        Number of rewritten elements per dotted factor name.

    Raises:
        ParameterError: If *params* violates the caller contract.
    """
    params.validate()
    counts: dict[str, int] = {}
    for dotted, transform in params.build_transforms():
        counts[dotted] = transform.apply(performance)
        logger.info("Applied %s (factor %s) to %d element(s)", dotted, transform.factor, counts[dotted])
    return counts
