"""
Tests for connector graph access, nearest-connector and neighbour resolution.
"""

import warnings

import pytest

from ductjoin.connectors import connected_neighbor, connectors_of, linked_connectors_of, nearest_connector
from ductjoin.errors import ConnectorNotFound, ElementNotFound, NoConnectors
from ductjoin.model import ConnectorRef, Document, Element

from conftest import make_connector, make_element


class TestGraphAccess:
    """Test reading connectors and their links."""

    def test_connectors_in_declaration_order(self, network):
        assert [c.name for c in connectors_of(network, "D1")] == ["start", "tap", "end"]

    def test_missing_element(self, network):
        with pytest.raises(ElementNotFound) as exc_info:
            connectors_of(network, "D99")
        assert exc_info.value.element_id == "D99"

    def test_linked_includes_own_element(self, network):
        start = network.get_connector(ConnectorRef("D1", "start"))
        linked = linked_connectors_of(network, start)
        assert [str(c.ref) for c in linked] == ["D1.tap", "F1.body", "F1.outlet"]

    def test_links_are_symmetric(self, network):
        outlet = network.get_connector(ConnectorRef("F1", "outlet"))
        assert [str(c.ref) for c in linked_connectors_of(network, outlet)] == ["D1.start"]

    def test_unconnected(self, network):
        end = network.get_connector(ConnectorRef("D1", "end"))
        assert linked_connectors_of(network, end) == []

    def test_stale_reference(self, network):
        start = network.get_connector(ConnectorRef("D1", "start"))
        start.refs.add(ConnectorRef("GONE", "inlet"))
        with pytest.raises(ElementNotFound):
            linked_connectors_of(network, start)

    def test_missing_connector_reference(self, network):
        start = network.get_connector(ConnectorRef("D1", "start"))
        start.refs.add(ConnectorRef("F1", "nope"))
        with pytest.raises(ConnectorNotFound):
            linked_connectors_of(network, start)


class TestNearestConnector:
    """Test nearest-connector resolution."""

    def test_picks_minimum_distance(self):
        """Connectors at distances 3, 1, 5 -> the one at 1."""
        doc = Document()
        doc.add_element(make_element("D1", "duct", [
            ("a", (3.0, 0.0, 0.0), (1.0, 0.0, 0.0), "end"),
            ("b", (1.0, 0.0, 0.0), (1.0, 0.0, 0.0), "end"),
            ("c", (5.0, 0.0, 0.0), (1.0, 0.0, 0.0), "end"),
        ]))
        assert nearest_connector(doc, "D1", (0.0, 0.0, 0.0)).name == "b"

    def test_picked_near_start(self, network):
        assert nearest_connector(network, "D1", (0.1, 0.0, 0.2)).name == "start"

    def test_picked_near_end(self, network):
        assert nearest_connector(network, "D1", (0.3, 0.0, 9.1)).name == "end"

    def test_tie_goes_to_first(self):
        doc = Document()
        doc.add_element(make_element("D1", "duct", [
            ("a", (-1.0, 0.0, 0.0), (1.0, 0.0, 0.0), "end"),
            ("b", (1.0, 0.0, 0.0), (1.0, 0.0, 0.0), "end"),
        ]))
        assert nearest_connector(doc, "D1", (0.0, 0.0, 0.0)).name == "a"

    def test_no_connectors(self):
        doc = Document()
        doc.add_element(Element("D1", "duct"))
        with pytest.raises(NoConnectors) as exc_info:
            nearest_connector(doc, "D1", (0.0, 0.0, 0.0))
        assert exc_info.value.element_id == "D1"

    def test_missing_element(self, network):
        with pytest.raises(ElementNotFound):
            nearest_connector(network, "nope", (0.0, 0.0, 0.0))


class TestConnectedNeighbor:
    """Test neighbour resolution."""

    def test_skips_internal_and_curve_links(self, network):
        start = network.get_connector(ConnectorRef("D1", "start"))
        neighbor = connected_neighbor(network, start)
        assert neighbor is not None
        assert neighbor.ref == ConnectorRef("F1", "outlet")

    def test_unconnected_returns_none(self, network):
        end = network.get_connector(ConnectorRef("D1", "end"))
        assert connected_neighbor(network, end) is None

    def test_only_internal_links_returns_none(self, network):
        tap = network.get_connector(ConnectorRef("D1", "tap"))
        assert connected_neighbor(network, tap) is None

    def test_multiple_neighbors_warns_and_uses_first(self, network):
        network.add_element(make_element("F2", "fitting", [
            ("outlet", (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), "end"),
        ]))
        network.connect(ConnectorRef("D1", "start"), ConnectorRef("F2", "outlet"))
        start = network.get_connector(ConnectorRef("D1", "start"))

        with pytest.warns(UserWarning, match="2 terminal connectors"):
            neighbor = connected_neighbor(network, start)
        assert neighbor.ref == ConnectorRef("F1", "outlet")

    def test_single_neighbor_does_not_warn(self, network):
        start = network.get_connector(ConnectorRef("D1", "start"))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            connected_neighbor(network, start)

    def test_connector_type_validated(self):
        with pytest.raises(ValueError, match="Unknown connector type"):
            make_connector("D1", "x", (0.0, 0.0, 0.0), connector_type="sideways")
