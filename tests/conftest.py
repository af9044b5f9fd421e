"""
Shared fixtures: a duct D1 joined at its start to an elbow F1.

    D1: start (0,0,0) -- tap (0,0,5, curve) -- end (0,0,10), axis +Z
    F1: outlet (0,0,0) facing -Z, inlet (0,-1,-1) facing -Y, body (curve)

D1.start is linked to D1.tap (same element), F1.body (curve) and
F1.outlet (the only real network joint).
"""

import pytest

from ductjoin.geometry import frame_matrix
from ductjoin.model import Connector, ConnectorRef, Document, Element


def make_connector(owner, name, origin, z_direction=(0.0, 0.0, 1.0), connector_type="end"):
    return Connector(
        name=name,
        owner_id=owner,
        origin=origin,
        coordinate_system=frame_matrix(origin, z_direction),
        connector_type=connector_type,
    )


def make_element(element_id, category, connectors, diameter=None):
    element = Element(element_id, category, diameter=diameter)
    for name, origin, z_direction, connector_type in connectors:
        element.add_connector(make_connector(element_id, name, origin, z_direction, connector_type))
    return element


@pytest.fixture
def network() -> Document:
    doc = Document(name="test")
    doc.add_element(make_element("D1", "duct", [
        ("start", (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), "end"),
        ("tap", (0.0, 0.0, 5.0), (0.0, 0.0, 1.0), "curve"),
        ("end", (0.0, 0.0, 10.0), (0.0, 0.0, 1.0), "end"),
    ], diameter=1.0))
    doc.add_element(make_element("F1", "fitting", [
        ("outlet", (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), "end"),
        ("inlet", (0.0, -1.0, -1.0), (0.0, -1.0, 0.0), "end"),
        ("body", (0.0, 0.0, -0.5), (0.0, 0.0, -1.0), "curve"),
    ]))
    doc.connect(ConnectorRef("D1", "start"), ConnectorRef("D1", "tap"))
    doc.connect(ConnectorRef("D1", "start"), ConnectorRef("F1", "body"))
    doc.connect(ConnectorRef("D1", "start"), ConnectorRef("F1", "outlet"))
    return doc


@pytest.fixture
def network_yaml(tmp_path):
    path = tmp_path / "network.yaml"
    path.write_text(
        """\
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
      - name: end
        position: [0, 0, 10]
        orientation: {z_direction: [0, 0, 1]}
  - id: F1
    category: fitting
    connectors:
      - name: outlet
        position: [0, 0, 0]
        orientation: {z_direction: [0, 0, -1]}
      - name: inlet
        position: [0, -1, -1]
        orientation: {z_direction: [0, -1, 0]}
"""
    )
    return path
