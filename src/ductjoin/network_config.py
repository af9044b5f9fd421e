"""
YAML description of a duct network.

This module defines the dataclasses used to load a Document from YAML and to
write one back after a realignment. A network file looks like:

    version: "1.0"
    settings:
      tolerance: 1.0e-9
      units: ft
    elements:
      - id: D1
        category: duct
        diameter: 1.0
        connectors:
          - name: start
            position: [0, 0, 0]
            orientation: {z_direction: [0, 0, 1]}
            links: [F1.outlet]

Links are symmetric once loaded: listing a link on either side is enough.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .geometry import frame_matrix, get_position, get_x_axis, get_z_axis, translation_matrix
from .model import Connector, ConnectorRef, Document, Element, RealignSettings


def _to_tuple3(value: list | tuple) -> tuple[float, float, float]:
    """Convert a list or tuple to a 3-element float tuple."""
    if len(value) != 3:
        raise ValueError(f"Expected 3 values, got {len(value)}: {value!r}")
    return (float(value[0]), float(value[1]), float(value[2]))


def _centroid(points: list[tuple[float, float, float]]) -> tuple[float, float, float]:
    n = len(points)
    return (
        sum(p[0] for p in points) / n,
        sum(p[1] for p in points) / n,
        sum(p[2] for p in points) / n,
    )


@dataclass
class OrientationConfig:
    """
    Connector frame orientation.

    Attributes:
        z_direction: Centerline direction at the connector
        x_direction: Optional rotational reference; computed if omitted
        origin: Frame origin if it differs from the connector position.
                Normally omitted; a mismatch is reported when realigning.
    """

    z_direction: tuple[float, float, float] = (0.0, 0.0, 1.0)
    x_direction: tuple[float, float, float] | None = None
    origin: tuple[float, float, float] | None = None

    def __post_init__(self):
        # Convert lists to tuples if needed (from YAML loading)
        self.z_direction = _to_tuple3(self.z_direction)
        if self.x_direction is not None:
            self.x_direction = _to_tuple3(self.x_direction)
        if self.origin is not None:
            self.origin = _to_tuple3(self.origin)


@dataclass
class ConnectorConfig:
    """
    Configuration for a single connector.

    Attributes:
        name: Identifier within the element (e.g., "start", "end", "inlet")
        position: World position (x, y, z)
        orientation: Frame orientation
        connector_type: "end", "curve", "physical", "logical" or "reference"
        links: Linked connectors as "ELEMENT.connector" strings
    """

    name: str
    position: tuple[float, float, float]
    orientation: OrientationConfig = field(default_factory=OrientationConfig)
    connector_type: str = "end"
    links: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.position = _to_tuple3(self.position)
        # Handle orientation as dict from YAML
        if isinstance(self.orientation, dict):
            self.orientation = OrientationConfig(**self.orientation)
        # A single link may be written as a bare scalar
        if isinstance(self.links, str):
            self.links = [self.links]
        self.links = [str(link) for link in self.links or []]


@dataclass
class ElementConfig:
    """
    Configuration for a duct, fitting or other element.

    Attributes:
        id: Unique element id
        category: "duct", "fitting", ...
        diameter: Nominal size used for the element body
        connectors: Connector configurations
    """

    id: str
    category: str = "duct"
    diameter: float | None = None
    connectors: list[ConnectorConfig] = field(default_factory=list)

    def __post_init__(self):
        self.id = str(self.id)
        if self.diameter is not None:
            self.diameter = float(self.diameter)
        # Handle connectors as list of dicts from YAML
        self.connectors = [
            ConnectorConfig(**c) if isinstance(c, dict) else c for c in self.connectors or []
        ]


@dataclass
class NetworkConfig:
    """
    Root configuration for a duct network.

    Attributes:
        version: File format version (currently "1.0")
        name: Document name
        settings: RealignSettings fields (tolerance, units, labels)
        elements: Element configurations
    """

    version: str = "1.0"
    name: str = "untitled"
    settings: dict = field(default_factory=dict)
    elements: list[ElementConfig] = field(default_factory=list)

    def __post_init__(self):
        self.version = str(self.version)
        self.settings = dict(self.settings or {})
        unknown = set(self.settings) - set(RealignSettings.__dataclass_fields__)
        if unknown:
            raise ValueError(
                f"Unknown settings {sorted(unknown)}. Valid settings: {list(RealignSettings.__dataclass_fields__)}"
            )
        if "tolerance" in self.settings:
            self.settings["tolerance"] = float(self.settings["tolerance"])
        # Handle elements as list of dicts from YAML
        self.elements = [
            ElementConfig(**e) if isinstance(e, dict) else e for e in self.elements or []
        ]

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "NetworkConfig":
        """Load a network configuration from a YAML file."""
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{yaml_path}: expected a mapping at the top level")
        data.setdefault("name", Path(yaml_path).stem)
        return cls(**data)

    def to_yaml(self, yaml_path: str | Path) -> None:
        """Save the network configuration to a YAML file."""
        with open(yaml_path, "w") as f:
            yaml.dump(self._to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_document(self) -> Document:
        """
        Build a Document from this configuration.

        Raises:
            ValueError: On duplicate ids or malformed link strings
            ElementNotFound: If a link names an element that is not defined
        """
        document = Document(name=self.name, settings=RealignSettings(**self.settings))

        for element_config in self.elements:
            element = Element(
                id=element_config.id,
                category=element_config.category,
                diameter=element_config.diameter,
            )
            for cc in element_config.connectors:
                frame_origin = cc.orientation.origin or cc.position
                element.add_connector(
                    Connector(
                        name=cc.name,
                        owner_id=element.id,
                        origin=cc.position,
                        coordinate_system=frame_matrix(
                            frame_origin, cc.orientation.z_direction, cc.orientation.x_direction
                        ),
                        connector_type=cc.connector_type,
                    )
                )
            if element_config.connectors:
                element.placement = translation_matrix(*_centroid([c.position for c in element_config.connectors]))
            document.add_element(element)

        for element_config in self.elements:
            for cc in element_config.connectors:
                for link in cc.links:
                    document.connect(ConnectorRef(element_config.id, cc.name), ConnectorRef.parse(link))

        return document

    @classmethod
    def from_document(cls, document: Document) -> "NetworkConfig":
        """Capture the current state of a Document."""
        elements = []
        for element in document:
            connectors = []
            for con in element.connectors.values():
                frame_origin = get_position(con.coordinate_system)
                connectors.append(
                    ConnectorConfig(
                        name=con.name,
                        position=con.origin,
                        orientation=OrientationConfig(
                            z_direction=get_z_axis(con.coordinate_system),
                            x_direction=get_x_axis(con.coordinate_system),
                            origin=None if frame_origin == con.origin else frame_origin,
                        ),
                        connector_type=con.connector_type,
                        links=[str(ref) for ref in sorted(con.refs)],
                    )
                )
            elements.append(
                ElementConfig(
                    id=element.id,
                    category=element.category,
                    diameter=element.diameter,
                    connectors=connectors,
                )
            )
        return cls(name=document.name, settings=asdict(document.settings), elements=elements)

    def _to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for YAML serialization."""
        return {
            "version": self.version,
            "name": self.name,
            "settings": self.settings,
            "elements": [self._element_to_dict(e) for e in self.elements],
        }

    def _element_to_dict(self, element: ElementConfig) -> dict[str, Any]:
        result: dict[str, Any] = {"id": element.id, "category": element.category}
        if element.diameter is not None:
            result["diameter"] = element.diameter
        if element.connectors:
            result["connectors"] = [self._connector_to_dict(c) for c in element.connectors]
        return result

    def _connector_to_dict(self, connector: ConnectorConfig) -> dict[str, Any]:
        orientation: dict[str, Any] = {"z_direction": list(connector.orientation.z_direction)}
        if connector.orientation.x_direction:
            orientation["x_direction"] = list(connector.orientation.x_direction)
        if connector.orientation.origin:
            orientation["origin"] = list(connector.orientation.origin)
        result: dict[str, Any] = {
            "name": connector.name,
            "position": list(connector.position),
            "orientation": orientation,
        }
        if connector.connector_type != "end":
            result["connector_type"] = connector.connector_type
        if connector.links:
            result["links"] = list(connector.links)
        return result


def load_document(yaml_path: str | Path) -> Document:
    """Load a Document from a network YAML file."""
    return NetworkConfig.from_yaml(yaml_path).to_document()


def save_document(document: Document, yaml_path: str | Path) -> None:
    """Write a Document to a network YAML file."""
    NetworkConfig.from_document(document).to_yaml(yaml_path)
