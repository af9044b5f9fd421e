#!/usr/bin/env python3
"""
Example: Disconnect vs. Reconnect

Loads a small supply run (elbow E1 -> duct D1 -> duct D2) and applies both
operations to the joint between E1 and D1:

1. Disconnect - the duct connector moves up the duct, the elbow stays
2. Reconnect  - the duct connector stays, the elbow slides up the duct

Equivalent command line:
    ductjoin disconnect examples/supply_run.yaml -e D1 --from 0.1 0 0.2 --to 5 5 3 -o out.yaml
"""

from pathlib import Path

from ductjoin import ConnectorRef, disconnect, load_document, reconnect
from ductjoin.logging_config import setup_logging
from ductjoin.shapes import export_step

NETWORK = Path(__file__).parent / "supply_run.yaml"
OUTPUT_DIR = Path(__file__).parent / "output"
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

PICK_FROM = (0.1, 0.0, 0.2)
PICK_TO = (5.0, 5.0, 3.0)


def disconnect_example():
    print("=" * 60)
    print("DISCONNECT")
    print("=" * 60)

    doc = load_document(NETWORK)
    result = disconnect(doc, "D1", PICK_FROM, PICK_TO)

    print(f"D1.{result.connector}: {result.original_origin} -> {result.projected}")
    print(f"E1.outlet stays at {doc.get_connector(ConnectorRef('E1', 'outlet')).origin}")


def reconnect_example():
    print("=" * 60)
    print("RECONNECT")
    print("=" * 60)

    doc = load_document(NETWORK)
    result = reconnect(doc, "D1", PICK_FROM, PICK_TO)

    print(f"{result.moved_element_id} moved by {result.translation}")
    print(f"E1.outlet now at {doc.get_connector(ConnectorRef('E1', 'outlet')).origin}")

    step_path = OUTPUT_DIR / "supply_run_reconnected.step"
    export_step(doc, step_path)
    print(f"Exported {step_path}")


if __name__ == "__main__":
    setup_logging()
    disconnect_example()
    reconnect_example()
