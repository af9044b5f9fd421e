"""
ductjoin - move duct connections along the duct centerline.

Disconnect moves a duct connector to a new point on its centerline, breaking
the joint with the neighbouring fitting. Reconnect keeps the connector and
drags the neighbouring fitting along instead.
"""

__version__ = "0.1.0"

from .connectors import connected_neighbor, connectors_of, linked_connectors_of, nearest_connector
from .errors import (
    ConnectorNotFound,
    ElementNotFound,
    InconsistentFrame,
    InvalidGeometry,
    NoConnectors,
    NoNeighbor,
    OperationCancelled,
    RealignError,
    TransactionError,
)
from .geometry import Line, distance, distance_to_line, frame_matrix, project_point_onto_line
from .model import Connector, ConnectorRef, Document, Element, RealignSettings, Transaction
from .network_config import NetworkConfig, load_document, save_document
from .picking import PickedPoint, PromptPicker, ScriptedPicker, is_duct
from .realign import (
    CommandResult,
    Realignment,
    Result,
    disconnect,
    reconnect,
    resolve_target,
    run_disconnect,
    run_reconnect,
)

__all__ = [
    "__version__",
    # Geometry
    "Line",
    "distance",
    "distance_to_line",
    "frame_matrix",
    "project_point_onto_line",
    # Document model
    "Connector",
    "ConnectorRef",
    "Document",
    "Element",
    "RealignSettings",
    "Transaction",
    # Graph access and resolvers
    "connected_neighbor",
    "connectors_of",
    "linked_connectors_of",
    "nearest_connector",
    # Realignment
    "CommandResult",
    "Realignment",
    "Result",
    "disconnect",
    "reconnect",
    "resolve_target",
    "run_disconnect",
    "run_reconnect",
    # Picking
    "PickedPoint",
    "PromptPicker",
    "ScriptedPicker",
    "is_duct",
    # Configuration
    "NetworkConfig",
    "load_document",
    "save_document",
    # Errors
    "ConnectorNotFound",
    "ElementNotFound",
    "InconsistentFrame",
    "InvalidGeometry",
    "NoConnectors",
    "NoNeighbor",
    "OperationCancelled",
    "RealignError",
    "TransactionError",
]
