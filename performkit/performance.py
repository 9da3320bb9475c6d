"""Performance view: scopes, control curves and style headers of one MPM performance."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Final

from performkit.document import Element, of_kind, query
from performkit.errors import DocumentError

# ── Element kinds ───────────────────────────────────────────────────────────
PERFORMANCE: Final[str] = "performance"
GLOBAL: Final[str] = "global"
PART: Final[str] = "part"
HEADER: Final[str] = "header"
DATED: Final[str] = "dated"

TEMPO_MAP: Final[str] = "tempoMap"
RUBATO_MAP: Final[str] = "rubatoMap"
ORNAMENTATION_STYLES: Final[str] = "ornamentationStyles"
ORNAMENT_DEF: Final[str] = "ornamentDef"
TEMPORAL_SPREAD: Final[str] = "temporalSpread"

# ── Entry fields ────────────────────────────────────────────────────────────
BPM: Final[str] = "bpm"
TRANSITION_TO: Final[str] = "transition.to"
INTENSITY: Final[str] = "intensity"
FRAME_LENGTH: Final[str] = "frameLength"
NAME_REF: Final[str] = "name.ref"


def _first_child(element: Element | None, kind: str) -> Element | None:
    if element is None:
        return None
    for child in element.children:
        if child.kind == kind:
            return child
    return None


class Performance:
    """
    Read-only traversal helper around one ``performance`` element.

    A performance owns one optional ``global`` scope and any number of
    ``part`` scopes. Each scope may carry a ``dated`` block (the control
    curves, e.g. ``tempoMap``) and a ``header`` block (style definitions).

    Scopes are visited parts first, in document order, then global. The
    order is fixed so that consumers which overwrite by identifier behave
    reproducibly.
    """

    def __init__(self, element: Element) -> None:
        if element.kind != PERFORMANCE:
            raise DocumentError(f"Expected a <{PERFORMANCE}> element, got <{element.kind}>.")
        self.element = element

    @property
    def global_scope(self) -> Element | None:
        return _first_child(self.element, GLOBAL)

    @property
    def parts(self) -> list[Element]:
        return [child for child in self.element.children if child.kind == PART]

    def scopes(self) -> list[Element]:
        scopes = self.parts
        global_scope = self.global_scope
        if global_scope is not None:
            scopes.append(global_scope)
        return scopes

    def curves(self, scope: Element) -> list[Element]:
        """All control curves (maps) in the scope's ``dated`` block."""
        dated = _first_child(scope, DATED)
        return list(dated.children) if dated is not None else []

    def curve_entries(self, kind: str | None = None) -> Iterator[Element]:
        """
        Yield every control-curve entry across all scopes.

        Args:
            kind: Restrict to curves of this kind (e.g. ``"tempoMap"``).
        """
        for scope in self.scopes():
            for curve in self.curves(scope):
                if kind is not None and curve.kind != kind:
                    continue
                yield from curve.children

    def headers(self) -> list[Element]:
        headers = (_first_child(scope, HEADER) for scope in self.scopes())
        return [header for header in headers if header is not None]

    def ornament_defs(self) -> Iterator[Element]:
        """Yield every ``ornamentDef`` reachable from an ornamentation style header."""
        for header in self.headers():
            for styles in header.children:
                if styles.kind == ORNAMENTATION_STYLES:
                    yield from query(styles, of_kind(ORNAMENT_DEF))


def iter_performances(root: Element) -> Iterator[Performance]:
    """Yield every performance in the document (including *root* itself)."""
    if root.kind == PERFORMANCE:
        yield Performance(root)
        return
    for element in list(query(root, of_kind(PERFORMANCE))):
        yield Performance(element)


def select_performance(root: Element, index: int = 0) -> Performance:
    """
    Pick the *index*-th performance of the document.

    Raises:
        DocumentError: If the document holds no performance with that index.
    """
    performances = list(iter_performances(root))
    if not performances:
        raise DocumentError("No performance found in document.")
    if index < 0 or index >= len(performances):
        raise DocumentError(
            f"Performance index {index} out of range. Available: 0..{len(performances) - 1}."
        )
    return performances[index]
