"""Document model: an owned tree of timed elements with query and detach primitives."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Final

logger = logging.getLogger(__name__)

# ── Attribute vocabulary (MSM / MPM) ────────────────────────────────────────
ID: Final[str] = "xml:id"
PLAIN_ID: Final[str] = "id"
DATE: Final[str] = "date"
MILLISECONDS_DATE: Final[str] = "milliseconds.date"
DATE_END: Final[str] = "date.end"
END_DATE: Final[str] = "endDate"

#: Attributes that mark the end of an interval-shaped element.
END_DATE_ATTRIBUTES: Final[tuple[str, ...]] = (DATE_END, END_DATE)

NOTE: Final[str] = "note"

Predicate = Callable[["Element"], bool]


class Element:
    """
    A node of the document tree.

    An element exclusively owns its children; appending a child that already
    has a parent moves it. Attribute values are kept as supplied (numbers from
    code, text from XML) and read numerically through :meth:`number`.

    Attributes:
        kind:       Tag naming the element's role, e.g. ``"note"`` or ``"tempo"``.
        attributes: Attribute name → raw value.
        parent:     Owning element, or None for a root / detached element.
        text:       Character data before the first child (None if none).
        tail:       Character data after the element, before its next sibling.
    """

    __slots__ = ("kind", "attributes", "parent", "text", "tail", "_children")

    def __init__(
        self,
        kind: str,
        attributes: dict[str, Any] | None = None,
        children: Iterable[Element] = (),
        text: str | None = None,
        tail: str | None = None,
    ) -> None:
        self.kind = kind
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.parent: Element | None = None
        self.text = text
        self.tail = tail
        self._children: list[Element] = []
        for child in children:
            self.append(child)

    def __repr__(self) -> str:
        ident = self.identifier
        suffix = f" {ID}={ident!r}" if ident is not None else ""
        return f"<Element {self.kind}{suffix} children={len(self._children)}>"

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def children(self) -> tuple[Element, ...]:
        """Snapshot of the children in document order."""
        return tuple(self._children)

    def append(self, child: Element) -> Element:
        """Attach *child* as the last child of this element and return it."""
        if child is self:
            raise ValueError("An element cannot own itself.")
        child.detach()
        child.parent = self
        self._children.append(child)
        return child

    def detach(self) -> None:
        """Remove this element (and its subtree) from its parent. No-op when unattached."""
        parent = self.parent
        if parent is None:
            return
        for index, sibling in enumerate(parent._children):
            if sibling is self:
                del parent._children[index]
                break
        self.parent = None

    def iter(self) -> Iterator[Element]:
        """Yield this element and all descendants in document (pre-)order."""
        stack: list[Element] = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element._children))

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def number(self, name: str) -> float | None:
        """
        Read attribute *name* as a finite float.

        Returns None when the attribute is absent or cannot be read as a
        number; malformed values are logged at DEBUG and otherwise ignored.
        """
        value = self.attributes.get(name)
        if value is None:
            return None
        if isinstance(value, bool):
            number = math.nan
        else:
            try:
                number = float(value)
            except (TypeError, ValueError):
                number = math.nan
        if not math.isfinite(number):
            logger.debug("Ignoring malformed %s=%r on <%s>", name, value, self.kind)
            return None
        return number

    @property
    def identifier(self) -> str | None:
        """The element's ``xml:id`` (or plain ``id``), if any."""
        value = self.attributes.get(ID)
        if value is None:
            value = self.attributes.get(PLAIN_ID)
        return None if value is None else str(value)

    @property
    def symbolic_date(self) -> float | None:
        return self.number(DATE)

    @property
    def physical_date(self) -> float | None:
        return self.number(MILLISECONDS_DATE)


# ── Queries ─────────────────────────────────────────────────────────────────

def query(root: Element, predicate: Predicate) -> Iterator[Element]:
    """
    Lazily yield the descendants of *root* matching *predicate*, in document order.

    The root itself is not considered. Do not detach elements while consuming
    the iterator; materialize it with ``list()`` first.
    """
    nodes = root.iter()
    next(nodes)
    return (element for element in nodes if predicate(element))


def of_kind(*kinds: str) -> Predicate:
    """Predicate: element kind is one of *kinds*."""
    wanted = frozenset(kinds)
    return lambda element: element.kind in wanted


def has_attribute(name: str) -> Predicate:
    """Predicate: element carries attribute *name* (whatever its value)."""
    return lambda element: name in element.attributes


def all_of(*predicates: Predicate) -> Predicate:
    return lambda element: all(predicate(element) for predicate in predicates)
