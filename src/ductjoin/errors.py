"""
Error kinds raised while resolving or applying a connector realignment.

Each error records the element it was detected on so a failed command can
tell the user which selection to correct.
"""

from __future__ import annotations


class RealignError(Exception):
    """Base class for failures that abort a realignment with no effect."""

    def __init__(self, message: str, element_id: str | None = None):
        super().__init__(message)
        self.element_id = element_id


class ElementNotFound(RealignError):
    """An element id no longer resolves in the document."""


class ConnectorNotFound(ElementNotFound):
    """A connector reference points at a connector its element does not own."""


class NoConnectors(RealignError):
    """The picked element owns no connectors."""


class NoNeighbor(RealignError):
    """The connector has no terminal link to a different element."""


class InvalidGeometry(RealignError):
    """Degenerate direction, malformed point or failed projection."""


class InconsistentFrame(InvalidGeometry):
    """A connector's frame origin does not coincide with its origin."""


class OperationCancelled(Exception):
    """The user aborted point acquisition. Not a failure."""


class TransactionError(RuntimeError):
    """The document mutation protocol was misused."""
