"""
Connector graph access and resolution.

- connectors_of / linked_connectors_of: read the connectivity graph
- nearest_connector: connector on an element closest to a picked point
- connected_neighbor: the terminal connector on a different element that a
  connector is joined to
"""

from __future__ import annotations

import logging
import warnings

from .errors import NoConnectors
from .geometry import Point3, as_point, distance
from .model import Connector, Document

logger = logging.getLogger(__name__)


def connectors_of(document: Document, element_id: str) -> list[Connector]:
    """
    All connectors owned by an element, in declaration order.

    Raises:
        ElementNotFound: If the element is not in the document
    """
    return list(document.get_element(element_id).connectors.values())


def linked_connectors_of(document: Document, connector: Connector) -> list[Connector]:
    """
    All connectors referenced by the given one.

    May include connectors on the same element (internal references).
    Ordered by (element id, connector name) so iteration is reproducible.

    Raises:
        ElementNotFound: If a reference points at a missing element
        ConnectorNotFound: If a reference points at a missing connector
    """
    return [document.get_connector(ref) for ref in sorted(connector.refs)]


def nearest_connector(document: Document, element_id: str, reference_point: Point3) -> Connector:
    """
    Find the connector on an element closest to a reference point.

    Ties go to the first connector encountered.

    Raises:
        ElementNotFound: If the element is not in the document
        NoConnectors: If the element owns no connectors
    """
    reference_point = as_point(reference_point)
    nearest: Connector | None = None
    dmin = float("inf")

    for con in connectors_of(document, element_id):
        d = distance(reference_point, con.origin)
        if d < dmin:
            dmin = d
            nearest = con

    if nearest is None:
        raise NoConnectors(f"Element '{element_id}' has no connectors", element_id=element_id)

    logger.debug("Nearest connector to %s on %s: %s (d=%.6g)", reference_point, element_id, nearest.name, dmin)
    return nearest


def connected_neighbor(document: Document, connector: Connector) -> Connector | None:
    """
    Return the connector joined to the given one, or None if unconnected.

    Only "end" connectors owned by a different element count; references to
    curve or other internal connectors, and to the connector's own element,
    are skipped. If several qualify, the first is used and a warning is
    issued.
    """
    candidates = [
        c
        for c in linked_connectors_of(document, connector)
        if c.is_terminal and c.owner_id != connector.owner_id
    ]
    if not candidates:
        logger.debug("Connector %s has no external terminal link", connector.ref)
        return None

    if len(candidates) > 1:
        warnings.warn(
            f"Connector {connector.ref} is linked to {len(candidates)} terminal connectors "
            f"({', '.join(str(c.ref) for c in candidates)}). Using {candidates[0].ref}.",
            stacklevel=2,
        )
    return candidates[0]
