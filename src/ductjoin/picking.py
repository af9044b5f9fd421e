"""
Point acquisition.

The realignment commands ask a PointPicker for two picks on a duct: one at
the connection to move, one at the target. Cancelling either pick raises
OperationCancelled before any geometry is read.

Implementations:
- ScriptedPicker: replays pre-resolved picks (tests, batch CLI)
- PromptPicker: asks for the element id and point on the terminal
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

import click

from .errors import InvalidGeometry, OperationCancelled
from .geometry import Point3, as_point
from .model import Document, Element

ElementPredicate = Callable[[Element], bool]

PICK_CONNECTION_PROMPT = "Please pick a duct at the connection to move."
PICK_TARGET_PROMPT = "Please pick a target point on the duct to move the connection to."


def is_duct(element: Element) -> bool:
    """Selection predicate: only ducts may be picked."""
    return element.category == "duct"


@dataclass(frozen=True)
class PickedPoint:
    """An element and the global point where it was picked."""

    element_id: str
    point: Point3

    def __post_init__(self):
        object.__setattr__(self, "point", as_point(self.point))


class PointPicker(Protocol):
    def pick_point(self, document: Document, predicate: ElementPredicate, prompt: str) -> PickedPoint:
        """Return the picked element and point, or raise OperationCancelled."""
        ...


class ScriptedPicker:
    """
    Replays a fixed sequence of picks.

    A None entry (or running out of picks) behaves like the user pressing
    Escape. Picks rejected by the predicate also cancel, since a real
    selection filter would never have let them through.
    """

    def __init__(self, picks: Iterable[PickedPoint | tuple[str, Point3] | None]):
        self._picks = [
            p if p is None or isinstance(p, PickedPoint) else PickedPoint(*p)
            for p in picks
        ]
        self.prompts: list[str] = []

    def pick_point(self, document: Document, predicate: ElementPredicate, prompt: str) -> PickedPoint:
        self.prompts.append(prompt)
        if not self._picks:
            raise OperationCancelled(prompt)
        pick = self._picks.pop(0)
        if pick is None:
            raise OperationCancelled(prompt)
        element = document.elements.get(pick.element_id)
        if element is None or not predicate(element):
            raise OperationCancelled(f"'{pick.element_id}' is not selectable: {prompt}")
        return pick


class PromptPicker:
    """
    Interactive picker on the terminal.

    Asks for an element id (re-asking until the predicate accepts it) and a
    point as "x y z" or "x,y,z". An empty answer or Ctrl-C cancels.
    """

    def __init__(self, default_element: str | None = None):
        self.default_element = default_element

    def pick_point(self, document: Document, predicate: ElementPredicate, prompt: str) -> PickedPoint:
        click.echo(prompt)
        try:
            while True:
                element_id = click.prompt(
                    "  Element", default=self.default_element or "", show_default=bool(self.default_element)
                ).strip()
                if not element_id:
                    raise OperationCancelled(prompt)
                element = document.elements.get(element_id)
                if element is not None and predicate(element):
                    break
                click.echo(f"  '{element_id}' cannot be picked here.")

            while True:
                text = click.prompt("  Point (x y z)", default="", show_default=False).strip()
                if not text:
                    raise OperationCancelled(prompt)
                try:
                    point = parse_point(text)
                except (ValueError, InvalidGeometry) as e:
                    click.echo(f"  {e}")
                    continue
                break
        except click.Abort as e:
            raise OperationCancelled(prompt) from e

        self.default_element = element_id
        return PickedPoint(element_id, point)


def parse_point(text: str) -> Point3:
    """
    Parse "x y z" or "x,y,z" into a point.

    Raises:
        ValueError: If the text is not three numbers
        InvalidGeometry: If a coordinate is nan or infinite
    """
    parts = text.replace(",", " ").split()
    if len(parts) != 3:
        raise ValueError(f"Expected three coordinates, got '{text}'")
    return as_point([float(p) for p in parts])
