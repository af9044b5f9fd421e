"""
Connector Realignment Engine

Moves a duct connector along the duct centerline, in one of two ways:

Disconnect:
    The connector itself moves to the target. The neighbouring fitting stays
    where it is, so the joint is broken geometrically (the cross references
    are left alone).

Reconnect:
    The connector stays put. The element owning the neighbouring connector is
    translated by (projected target - picked reference point), dragging the
    fitting along the duct axis so the network stays joined.

Both operations share the same resolution steps:

    1. nearest connector on the picked element to the reference point
    2. project the target point onto that connector's centerline

and apply their change inside a single document transaction, so a failure
at any step leaves the document untouched.

Example:
    result = disconnect(doc, "D1", (0.1, 0.0, 0.2), (5.0, 5.0, 3.0))
    result.projected   # (0.0, 0.0, 3.0)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from .connectors import connected_neighbor, nearest_connector
from .errors import InconsistentFrame, InvalidGeometry, NoNeighbor, OperationCancelled, RealignError
from .geometry import (
    Line,
    Point3,
    Vector3,
    as_point,
    distance_to_line,
    is_almost_equal,
    project_point_onto_line,
    scaled_tolerance,
    subtract,
)
from .model import Connector, Document
from .picking import PICK_CONNECTION_PROMPT, PICK_TARGET_PROMPT, PointPicker, is_duct

logger = logging.getLogger(__name__)

Operation = Literal["disconnect", "reconnect"]


@dataclass(frozen=True)
class Realignment:
    """
    Record of a committed realignment.

    Attributes:
        operation: "disconnect" or "reconnect"
        element_id: Picked duct
        connector: Name of the connector resolved on the duct
        original_origin: Connector origin before the operation
        projected: Target point projected onto the connector centerline
        translation: Vector applied to the moved element (reconnect only)
        moved_element_id: Element translated (reconnect only)
        neighbor: "ELEMENT.connector" of the linked neighbour (reconnect only)
    """

    operation: Operation
    element_id: str
    connector: str
    original_origin: Point3
    projected: Point3
    translation: Vector3 | None = None
    moved_element_id: str | None = None
    neighbor: str | None = None


def resolve_target(
    document: Document,
    element_id: str,
    reference_point: Point3,
    target_point: Point3,
) -> tuple[Connector, Point3]:
    """
    Resolve the connector to move and where on its centerline the target lies.

    Args:
        document: Document holding the element
        element_id: Picked duct
        reference_point: Point picked near the connection to move
        target_point: Point picked at the desired new location

    Returns:
        (connector nearest to reference_point, target projected onto its centerline)

    Raises:
        ElementNotFound: If the element is gone
        NoConnectors: If the element owns no connectors
        InconsistentFrame: If the connector frame origin is not the connector origin
        InvalidGeometry: If the centerline is degenerate or projection fails
    """
    tolerance = document.settings.tolerance
    target_point = as_point(target_point)

    con = nearest_connector(document, element_id, reference_point)

    if not is_almost_equal(con.origin, con.frame_origin, tolerance):
        raise InconsistentFrame(
            f"Connector {con.ref}: frame origin {con.frame_origin} does not match origin {con.origin}",
            element_id=element_id,
        )

    try:
        line = Line.from_frame(con.coordinate_system)
    except InvalidGeometry as e:
        raise InvalidGeometry(f"Connector {con.ref} has a degenerate axis: {e}", element_id=element_id) from e

    projected = project_point_onto_line(target_point, line)

    off_line = distance_to_line(projected, line)
    if off_line >= scaled_tolerance(tolerance, projected, line.origin):
        raise InvalidGeometry(
            f"Projected point {projected} is {off_line:.3g} off the centerline of {con.ref}",
            element_id=element_id,
        )

    logger.debug("Target %s projected onto %s centerline at %s", target_point, con.ref, projected)
    return con, projected


def disconnect(
    document: Document,
    element_id: str,
    reference_point: Point3,
    target_point: Point3,
) -> Realignment:
    """
    Move the connector nearest reference_point to target_point's projection.

    Only the connector moves; the neighbouring element is untouched.

    Raises:
        RealignError: Any resolution failure, with the document unchanged
    """
    con, projected = resolve_target(document, element_id, reference_point, target_point)
    original = con.origin

    with document.transaction(document.settings.disconnect_label) as tx:
        tx.set_connector_origin(con, projected)

    logger.info("Disconnect: %s moved from %s to %s", con.ref, original, projected)
    return Realignment(
        operation="disconnect",
        element_id=element_id,
        connector=con.name,
        original_origin=original,
        projected=projected,
    )


def reconnect(
    document: Document,
    element_id: str,
    reference_point: Point3,
    target_point: Point3,
) -> Realignment:
    """
    Translate the neighbouring element so the joint follows the drag.

    The translation is measured from the picked reference point, not from
    the connector origin, so the fitting moves by the distance the user
    dragged along the duct. The duct's own connector is not moved.

    Raises:
        NoNeighbor: If the connector has no terminal link to another element
        RealignError: Any other resolution failure, with the document unchanged
    """
    reference_point = as_point(reference_point)
    con, projected = resolve_target(document, element_id, reference_point, target_point)
    v = subtract(projected, reference_point)

    neighbor = connected_neighbor(document, con)
    if neighbor is None:
        raise NoNeighbor(f"Connector {con.ref} is not connected to another element", element_id=element_id)

    with document.transaction(document.settings.reconnect_label) as tx:
        tx.translate_element(neighbor.owner_id, v)

    logger.info("Reconnect: %s translated by %s to follow %s", neighbor.owner_id, v, con.ref)
    return Realignment(
        operation="reconnect",
        element_id=element_id,
        connector=con.name,
        original_origin=con.origin,
        projected=projected,
        translation=v,
        moved_element_id=neighbor.owner_id,
        neighbor=str(neighbor.ref),
    )


# =============================================================================
# INTERACTIVE COMMANDS
# =============================================================================


class Result(Enum):
    """Outcome of an interactive command."""

    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandResult:
    status: Result
    message: str = ""
    realignment: Realignment | None = None
    error: RealignError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is Result.SUCCEEDED


_OPERATIONS = {
    "disconnect": disconnect,
    "reconnect": reconnect,
}


def run_command(operation: Operation, document: Document, picker: PointPicker) -> CommandResult:
    """
    Pick a connection and a target on a duct, then realign.

    Returns:
        CANCELLED if either pick is aborted (nothing read, nothing changed),
        FAILED with a message naming the element and cause on a RealignError
        (including one raised by the picker),
        SUCCEEDED with the Realignment otherwise
    """
    try:
        pick_from = picker.pick_point(document, is_duct, PICK_CONNECTION_PROMPT)
        pick_to = picker.pick_point(document, is_duct, PICK_TARGET_PROMPT)
    except OperationCancelled:
        logger.debug("%s cancelled during point acquisition", operation)
        return CommandResult(Result.CANCELLED)
    except RealignError as e:
        message = f"{operation.capitalize()} failed while picking ({type(e).__name__}): {e}"
        logger.warning(message)
        return CommandResult(Result.FAILED, message=message, error=e)

    try:
        realignment = _OPERATIONS[operation](document, pick_from.element_id, pick_from.point, pick_to.point)
    except RealignError as e:
        element = e.element_id or pick_from.element_id
        message = f"{operation.capitalize()} failed on element '{element}' ({type(e).__name__}): {e}"
        logger.warning(message)
        return CommandResult(Result.FAILED, message=message, error=e)

    return CommandResult(Result.SUCCEEDED, realignment=realignment)


def run_disconnect(document: Document, picker: PointPicker) -> CommandResult:
    """Interactive Disconnect command."""
    return run_command("disconnect", document, picker)


def run_reconnect(document: Document, picker: PointPicker) -> CommandResult:
    """Interactive Reconnect command."""
    return run_command("reconnect", document, picker)
