"""
In-memory Host Document Model

Stands in for the host CAD platform: it owns elements (ducts and fittings),
their connectors, and the commit-on-success mutation protocol.

Connectivity is by coincidence plus cross-reference. Two connectors are
"connected" when each lists the other in its refs and both sit at the same
position. Moving one connector does not edit either ref set; it only breaks
the joint geometrically.

Example:
    doc = Document()
    doc.add_element(Element("D1", "duct", connectors={...}))
    doc.connect(ConnectorRef("D1", "start"), ConnectorRef("F1", "outlet"))

    with doc.transaction("Move Fitting") as tx:
        tx.translate_element("F1", (0.0, 0.0, 2.5))
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, NamedTuple, TypeAlias

import numpy as np

from .errors import ConnectorNotFound, ElementNotFound, TransactionError
from .geometry import (
    DEFAULT_TOLERANCE,
    Point3,
    Vector3,
    add,
    as_point,
    get_position,
    get_z_axis,
    identity_matrix,
    translate_matrix,
)

if TYPE_CHECKING:
    import cadquery as cq

logger = logging.getLogger(__name__)

ConnectorType: TypeAlias = Literal["end", "curve", "physical", "logical", "reference"]
CONNECTOR_TYPES: tuple[str, ...] = ("end", "curve", "physical", "logical", "reference")


class ConnectorRef(NamedTuple):
    """Reference to a connector by owning element id and connector name."""

    element_id: str
    connector: str

    @classmethod
    def parse(cls, text: str) -> ConnectorRef:
        """Parse "ELEMENT.connector" (the element id may itself contain dots)."""
        element_id, sep, name = text.rpartition(".")
        if not sep or not element_id or not name:
            raise ValueError(f"Invalid connector reference '{text}'. Expected 'ELEMENT.connector'")
        return cls(element_id, name)

    def __str__(self) -> str:
        return f"{self.element_id}.{self.connector}"


# =============================================================================
# SETTINGS
# =============================================================================


@dataclass
class RealignSettings:
    """
    Document-level settings for realignment.

    Attributes:
        tolerance: Absolute coincidence tolerance at unit scale
        units: Length unit of all coordinates (informational)
        disconnect_label: Transaction label for Disconnect
        reconnect_label: Transaction label for Reconnect
    """

    tolerance: float = DEFAULT_TOLERANCE
    units: str = "ft"
    disconnect_label: str = "Move Duct Connector"
    reconnect_label: str = "Move Fitting"


# =============================================================================
# CONNECTOR AND ELEMENT
# =============================================================================


@dataclass(eq=False)
class Connector:
    """
    An attachment point on an element.

    Attributes:
        name: Identifier unique within the owning element (e.g., "start", "inlet")
        owner_id: Id of the owning element
        origin: World position of the connector
        coordinate_system: 4x4 world frame; Z-axis is the local centerline direction
        connector_type: "end" for a terminal network joint, otherwise an
            internal or non-terminal connector
        refs: Connectors this one is linked to (references, not ownership)
    """

    name: str
    owner_id: str
    origin: Point3
    coordinate_system: np.ndarray = field(default_factory=identity_matrix, repr=False)
    connector_type: ConnectorType = "end"
    refs: set[ConnectorRef] = field(default_factory=set)

    def __post_init__(self):
        self.origin = as_point(self.origin)
        if self.connector_type not in CONNECTOR_TYPES:
            raise ValueError(
                f"Unknown connector type '{self.connector_type}'. Valid types: {list(CONNECTOR_TYPES)}"
            )

    @property
    def ref(self) -> ConnectorRef:
        return ConnectorRef(self.owner_id, self.name)

    @property
    def frame_origin(self) -> Point3:
        """Origin of the connector's coordinate system."""
        return get_position(self.coordinate_system)

    @property
    def axis(self) -> tuple[float, float, float]:
        """Centerline direction at the connector (Z-axis of its frame)."""
        return get_z_axis(self.coordinate_system)

    @property
    def is_terminal(self) -> bool:
        return self.connector_type == "end"

    @property
    def is_connected(self) -> bool:
        return bool(self.refs)


@dataclass(eq=False)
class Element:
    """
    A duct segment, fitting or other element that owns connectors.

    Attributes:
        id: Unique element id within the document
        category: Element kind ("duct", "fitting", ...)
        connectors: Owned connectors keyed by name, in declaration order
        placement: 4x4 world transform of the element body
        diameter: Nominal size, used to build the element body
        shape: Optional CadQuery body in world coordinates
    """

    id: str
    category: str = "duct"
    connectors: dict[str, Connector] = field(default_factory=dict)
    placement: np.ndarray = field(default_factory=identity_matrix, repr=False)
    diameter: float | None = None
    shape: cq.Shape | None = field(default=None, repr=False)

    def add_connector(self, connector: Connector) -> Connector:
        """
        Attach a connector to this element.

        Raises:
            ValueError: If the connector belongs to another element or the
                name is already taken
        """
        if connector.owner_id != self.id:
            raise ValueError(f"Connector '{connector.name}' is owned by '{connector.owner_id}', not '{self.id}'")
        if connector.name in self.connectors:
            raise ValueError(f"Connector '{connector.name}' already exists on element '{self.id}'")
        self.connectors[connector.name] = connector
        return connector

    def get_connector(self, name: str) -> Connector:
        """Get a connector by name."""
        if name not in self.connectors:
            raise ConnectorNotFound(
                f"Connector '{name}' not found on element '{self.id}'. Available: {list(self.connectors)}",
                element_id=self.id,
            )
        return self.connectors[name]


# =============================================================================
# DOCUMENT
# =============================================================================


class Document:
    """
    Collection of elements plus the transactional mutation protocol.

    Reads are always allowed. Mutations are only accepted through a
    Transaction obtained from transaction(), and only become visible when
    the transaction block exits without an exception.
    """

    def __init__(self, name: str = "untitled", settings: RealignSettings | None = None):
        self.name = name
        self.settings = settings or RealignSettings()
        self.elements: dict[str, Element] = {}
        self._active: Transaction | None = None

    def __contains__(self, element_id: str) -> bool:
        return element_id in self.elements

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements.values())

    def __len__(self) -> int:
        return len(self.elements)

    def add_element(self, element: Element) -> Element:
        if element.id in self.elements:
            raise ValueError(f"Element '{element.id}' already exists in document '{self.name}'")
        self.elements[element.id] = element
        return element

    def get_element(self, element_id: str) -> Element:
        """
        Look up an element by id.

        Raises:
            ElementNotFound: If the id does not resolve (stale handle)
        """
        element = self.elements.get(element_id)
        if element is None:
            raise ElementNotFound(f"Element '{element_id}' not found in document '{self.name}'", element_id=element_id)
        return element

    def get_connector(self, ref: ConnectorRef) -> Connector:
        return self.get_element(ref.element_id).get_connector(ref.connector)

    def connect(self, a: ConnectorRef, b: ConnectorRef) -> None:
        """Cross-reference two connectors (symmetric link)."""
        con_a = self.get_connector(a)
        con_b = self.get_connector(b)
        con_a.refs.add(con_b.ref)
        con_b.refs.add(con_a.ref)

    @property
    def in_transaction(self) -> bool:
        return self._active is not None

    @contextmanager
    def transaction(self, label: str) -> Iterator[Transaction]:
        """
        Open a mutation scope.

        All mutations recorded on the yielded Transaction are applied together
        when the block exits normally, and discarded if it raises.

        Raises:
            TransactionError: If another transaction is already open
        """
        if self._active is not None:
            raise TransactionError(
                f"Cannot start '{label}': transaction '{self._active.label}' is already open"
            )
        tx = Transaction(self, label)
        self._active = tx
        try:
            yield tx
        except BaseException:
            tx._discard()
            raise
        else:
            try:
                tx._commit()
            except BaseException:
                tx._discard()
                raise
        finally:
            self._active = None


# =============================================================================
# TRANSACTION
# =============================================================================


@dataclass
class _SetOrigin:
    ref: ConnectorRef
    point: Point3


@dataclass
class _Translate:
    element_id: str
    vector: Vector3


class Transaction:
    """
    A change-set of connector relocations and element translations.

    Targets are validated when a change is recorded, so a stale id fails
    before anything is applied.
    """

    def __init__(self, document: Document, label: str):
        self.document = document
        self.label = label
        self.changes: list[_SetOrigin | _Translate] = []
        self.status: Literal["open", "committed", "rolled_back"] = "open"

    def _check_open(self) -> None:
        if self.status != "open":
            raise TransactionError(f"Transaction '{self.label}' is already {self.status.replace('_', ' ')}")

    def set_connector_origin(self, connector: Connector | ConnectorRef, point: Point3) -> None:
        """Relocate a connector (and its frame) to point, leaving its element untouched."""
        self._check_open()
        ref = connector.ref if isinstance(connector, Connector) else connector
        self.document.get_connector(ref)
        self.changes.append(_SetOrigin(ref, as_point(point)))

    def translate_element(self, element_id: str, vector: Vector3) -> None:
        """Rigidly move an element: placement, every connector and the body."""
        self._check_open()
        self.document.get_element(element_id)
        self.changes.append(_Translate(element_id, as_point(vector)))

    def _commit(self) -> None:
        """
        Apply every recorded change.

        New frames, origins, placements and bodies are all computed first.
        Nothing is assigned until every change has been staged, so a failure
        while staging leaves the document untouched.
        """
        self._check_open()
        stage = _Stage(self.document)
        for change in self.changes:
            if isinstance(change, _SetOrigin):
                stage.set_origin(change)
            else:
                stage.translate(change)
        stage.assign()
        self.status = "committed"
        logger.info("Committed '%s' (%d change(s))", self.label, len(self.changes))

    def _discard(self) -> None:
        self.status = "rolled_back"
        logger.info("Rolled back '%s' (%d change(s) discarded)", self.label, len(self.changes))
        self.changes.clear()


class _Stage:
    """Pending state per connector and element, built on top of earlier staged changes."""

    def __init__(self, document: Document):
        self.document = document
        self.connectors: dict[ConnectorRef, tuple[np.ndarray, Point3]] = {}
        self.elements: dict[str, tuple[np.ndarray, cq.Shape | None]] = {}

    def _connector_state(self, con: Connector) -> tuple[np.ndarray, Point3]:
        return self.connectors.get(con.ref, (con.coordinate_system, con.origin))

    def _element_state(self, element: Element) -> tuple[np.ndarray, cq.Shape | None]:
        return self.elements.get(element.id, (element.placement, element.shape))

    def set_origin(self, change: _SetOrigin) -> None:
        con = self.document.get_connector(change.ref)
        T = self._connector_state(con)[0].copy()
        T[0:3, 3] = change.point
        self.connectors[con.ref] = (T, change.point)

    def translate(self, change: _Translate) -> None:
        element = self.document.get_element(change.element_id)
        v = change.vector
        placement, shape = self._element_state(element)
        if shape is not None:
            from .shapes import translate_shape

            shape = translate_shape(shape, v)
        self.elements[element.id] = (translate_matrix(placement, v), shape)
        for con in element.connectors.values():
            T, origin = self._connector_state(con)
            self.connectors[con.ref] = (translate_matrix(T, v), add(origin, v))

    def assign(self) -> None:
        for element_id, (placement, shape) in self.elements.items():
            element = self.document.get_element(element_id)
            element.placement = placement
            element.shape = shape
            logger.debug("Element %s placed at %s", element_id, get_position(placement))
        for ref, (T, origin) in self.connectors.items():
            con = self.document.get_connector(ref)
            con.coordinate_system = T
            con.origin = origin
            logger.debug("Connector %s moved to %s", ref, origin)
