"""
Element bodies built with CadQuery.

Ducts are modelled as cylinders between their first two connectors, fittings
as cubes centred on their placement. Bodies live in world coordinates and
move with their element when it is translated; relocating a single connector
leaves them untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cadquery as cq

from .geometry import Point3, Vector3, distance, get_position, normalize, subtract
from .model import Document, Element

logger = logging.getLogger(__name__)

DEFAULT_DUCT_DIAMETER = 1.0
DEFAULT_FITTING_SIZE = 1.2


def make_duct_body(start: Point3, end: Point3, diameter: float) -> cq.Shape:
    """
    Create a solid cylinder from start to end.

    Raises:
        InvalidGeometry: If start and end coincide
    """
    direction = normalize(subtract(end, start))
    return cq.Solid.makeCylinder(
        diameter / 2,
        distance(start, end),
        cq.Vector(*start),
        cq.Vector(*direction),
    )


def make_fitting_body(center: Point3, size: float) -> cq.Shape:
    """Create a cube of edge length size centred on center."""
    box = cq.Solid.makeBox(size, size, size, cq.Vector(-size / 2, -size / 2, -size / 2))
    return box.moved(cq.Location(cq.Vector(*center)))


def translate_shape(shape: cq.Shape, v: Vector3) -> cq.Shape:
    """Return the shape moved by vector v."""
    return shape.moved(cq.Location(cq.Vector(*v)))


def make_element_body(element: Element) -> cq.Shape | None:
    """Body for an element, or None if its geometry cannot support one."""
    connectors = list(element.connectors.values())
    if element.category == "duct":
        if len(connectors) < 2 or distance(connectors[0].origin, connectors[1].origin) < 1e-9:
            logger.debug("Duct %s has no extent; skipping body", element.id)
            return None
        return make_duct_body(connectors[0].origin, connectors[1].origin, element.diameter or DEFAULT_DUCT_DIAMETER)
    return make_fitting_body(get_position(element.placement), element.diameter or DEFAULT_FITTING_SIZE)


def build_shapes(document: Document) -> int:
    """
    Attach a body to every element that does not have one.

    Returns:
        Number of bodies created
    """
    count = 0
    for element in document:
        if element.shape is None:
            element.shape = make_element_body(element)
            count += element.shape is not None
    return count


def export_step(document: Document, path: str | Path) -> int:
    """
    Export all element bodies to a single STEP file.

    Returns:
        Number of bodies exported

    Raises:
        ValueError: If the document has no bodies to export
    """
    build_shapes(document)
    solids = [element.shape for element in document if element.shape is not None]
    if not solids:
        raise ValueError(f"Document '{document.name}' has no element bodies to export")
    cq.exporters.export(cq.Compound.makeCompound(solids), str(path))
    logger.info("Exported %d bodies to %s", len(solids), path)
    return len(solids)
