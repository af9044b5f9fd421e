"""
Tests for the YAML network description.
"""

import pytest

from ductjoin.errors import ElementNotFound, InconsistentFrame
from ductjoin.geometry import get_position, get_z_axis
from ductjoin.model import ConnectorRef
from ductjoin.network_config import (
    ConnectorConfig,
    ElementConfig,
    NetworkConfig,
    OrientationConfig,
    load_document,
    save_document,
)
from ductjoin.realign import disconnect, reconnect


class TestConfigSchema:
    """Tests for configuration dataclasses."""

    def test_lists_become_tuples(self):
        config = ConnectorConfig(
            name="start",
            position=[0, 0, 1],
            orientation={"z_direction": [0, 1, 0]},
        )
        assert config.position == (0.0, 0.0, 1.0)
        assert isinstance(config.orientation, OrientationConfig)
        assert config.orientation.z_direction == (0.0, 1.0, 0.0)

    def test_bad_point_length(self):
        with pytest.raises(ValueError, match="Expected 3 values"):
            ConnectorConfig(name="start", position=[0, 0])

    def test_element_from_dicts(self):
        config = ElementConfig(id=7, connectors=[{"name": "a", "position": [1, 2, 3]}])
        assert config.id == "7"
        assert config.connectors[0].connector_type == "end"

    def test_scalar_link_becomes_list(self):
        config = ConnectorConfig(name="start", position=[0, 0, 0], links="F1.outlet")
        assert config.links == ["F1.outlet"]

    def test_empty_links(self):
        assert ConnectorConfig(name="start", position=[0, 0, 0], links=None).links == []

    def test_empty_connectors(self):
        assert ElementConfig(id="D1", connectors=None).connectors == []

    def test_empty_elements(self):
        assert NetworkConfig(elements=None).elements == []

    def test_tolerance_string_coerced(self):
        config = NetworkConfig(settings={"tolerance": "1e-6"})
        assert config.settings["tolerance"] == 1e-6

    def test_unknown_setting(self):
        with pytest.raises(ValueError, match="Unknown settings"):
            NetworkConfig(settings={"tolerence": 1e-6})


class TestLoading:
    """Tests for building a Document from YAML."""

    def test_load(self, network_yaml):
        doc = load_document(network_yaml)
        assert doc.name == "network"
        assert [e.id for e in doc] == ["D1", "F1"]
        assert doc.settings.units == "ft"
        assert doc.get_element("D1").diameter == 1.0

    def test_links_are_symmetric(self, network_yaml):
        doc = load_document(network_yaml)
        outlet = doc.get_connector(ConnectorRef("F1", "outlet"))
        assert outlet.refs == {ConnectorRef("D1", "start")}

    def test_frames(self, network_yaml):
        doc = load_document(network_yaml)
        outlet = doc.get_connector(ConnectorRef("F1", "outlet"))
        assert get_position(outlet.coordinate_system) == (0.0, 0.0, 0.0)
        assert get_z_axis(outlet.coordinate_system) == pytest.approx((0.0, 0.0, -1.0))

    def test_fitting_placement_at_connector_centroid(self, network_yaml):
        doc = load_document(network_yaml)
        assert get_position(doc.get_element("F1").placement) == pytest.approx((0.0, -0.5, -0.5))

    def test_dangling_link(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            "elements:\n"
            "  - id: D1\n"
            "    connectors:\n"
            "      - {name: start, position: [0, 0, 0], links: [F9.inlet]}\n"
        )
        with pytest.raises(ElementNotFound):
            load_document(path)

    def test_scalar_link_in_yaml(self, tmp_path):
        path = tmp_path / "scalar.yaml"
        path.write_text(
            "elements:\n"
            "  - id: D1\n"
            "    connectors:\n"
            "      - {name: start, position: [0, 0, 0], links: F1.outlet}\n"
            "  - id: F1\n"
            "    category: fitting\n"
            "    connectors:\n"
            "      - {name: outlet, position: [0, 0, 0]}\n"
            "  - id: F2\n"
            "    category: fitting\n"
            "    connectors:\n"
        )
        doc = load_document(path)
        assert doc.get_connector(ConnectorRef("D1", "start")).refs == {ConnectorRef("F1", "outlet")}
        assert doc.get_element("F2").connectors == {}

    def test_explicit_frame_origin_mismatch(self, tmp_path):
        path = tmp_path / "mismatch.yaml"
        path.write_text(
            "elements:\n"
            "  - id: D1\n"
            "    connectors:\n"
            "      - name: start\n"
            "        position: [0, 0, 0]\n"
            "        orientation: {z_direction: [0, 0, 1], origin: [0, 0, 0.25]}\n"
        )
        doc = load_document(path)
        with pytest.raises(InconsistentFrame):
            disconnect(doc, "D1", (0.0, 0.0, 0.0), (0.0, 0.0, 2.0))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_document(path)


class TestSaving:
    """Tests for writing a Document back to YAML."""

    def test_disconnect_survives_reload(self, network_yaml, tmp_path):
        doc = load_document(network_yaml)
        disconnect(doc, "D1", (0.1, 0.0, 0.2), (5.0, 5.0, 3.0))
        out = tmp_path / "out.yaml"
        save_document(doc, out)

        reloaded = load_document(out)
        start = reloaded.get_connector(ConnectorRef("D1", "start"))
        assert start.origin == pytest.approx((0.0, 0.0, 3.0))
        assert start.refs == {ConnectorRef("F1", "outlet")}

    def test_reconnect_survives_reload(self, network_yaml, tmp_path):
        doc = load_document(network_yaml)
        reconnect(doc, "D1", (0.1, 0.0, 0.2), (5.0, 5.0, 3.0))
        out = tmp_path / "out.yaml"
        save_document(doc, out)

        reloaded = load_document(out)
        assert reloaded.get_connector(ConnectorRef("F1", "outlet")).origin == pytest.approx((-0.1, 0.0, 2.8))
        assert reloaded.get_connector(ConnectorRef("D1", "start")).origin == (0.0, 0.0, 0.0)
        assert reloaded.settings.tolerance == 1e-9

    def test_round_trip_keeps_connector_types(self, network, tmp_path):
        out = tmp_path / "fixture.yaml"
        save_document(network, out)
        reloaded = load_document(out)
        assert reloaded.get_connector(ConnectorRef("D1", "tap")).connector_type == "curve"
        assert ConnectorRef("D1", "tap") in reloaded.get_connector(ConnectorRef("D1", "start")).refs
