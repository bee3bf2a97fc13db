#!/usr/bin/env python3
"""
events2tf.py - Replay InfraQ editor events and emit Terraform

Drives the resource graph with the same gestures the canvas produces:
placing a resource, editing one config key, drawing a connection,
deleting a resource. Then generates Terraform for the resulting graph.

Usage:
    python events2tf.py events.json                  # print to stdout
    python events2tf.py events.json -o infraq.tf     # write a file
    cat events.json | python events2tf.py - -o out/ --check

Events file (a list, or {"events": [...]}):
    [
      {"op": "add", "kind": "vpc", "as": "net", "position": [40, 80]},
      {"op": "configure", "node": "net", "key": "cidrBlock", "value": "10.1.0.0/16"},
      {"op": "add", "kind": "sg", "as": "web_sg"},
      {"op": "configure", "node": "web_sg", "key": "vpcId", "ref": "net"},
      {"op": "add", "kind": "ec2", "as": "web"},
      {"op": "connect", "source": "web", "target": "web_sg"},
      {"op": "disconnect", "source": "web", "target": "web_sg"},
      {"op": "delete", "node": "web"}
    ]

"node", "source", "target" and "ref" take an alias from "as" or a node id.

Requirements:
    pip install python-hcl2
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from connections import ConnectionResult, disconnect
from errors import EventError, InfraqError
from export import EXPORT_FILENAME, export, is_directory_target
from graph2tf import check_syntax, dangling_references
from graph_store import EditorState

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# =============================================================================
# REPLAY
# =============================================================================

@dataclass
class ReplayResult:
    state: EditorState
    aliases: Dict[str, str] = field(default_factory=dict)
    accepted: int = 0
    rejected: List[ConnectionResult] = field(default_factory=list)


def load_events(data) -> List[dict]:
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise EventError(0, "expected a list of events or {\"events\": [...]}")
    return data


def _field(event: dict, index: int, name: str):
    if name not in event:
        raise EventError(index, f"{event.get('op')!r} needs {name!r}")
    return event[name]


def _text(event: dict, index: int, name: str) -> str:
    value = _field(event, index, name)
    if not isinstance(value, str):
        raise EventError(index, f"{name!r} must be a string, got {value!r}")
    return value


def _position(event: dict, index: int) -> Tuple[float, float]:
    position = event.get("position")
    if position is None:
        return (0, 0)
    if (
        not isinstance(position, (list, tuple))
        or len(position) != 2
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in position)
    ):
        raise EventError(index, f"'position' must be [x, y], got {position!r}")
    return tuple(position)


def _node_id(result: ReplayResult, index: int, event: dict, name: str) -> str:
    ref = _text(event, index, name)
    node_id = result.aliases.get(ref, ref)
    if node_id not in result.state.store:
        raise EventError(index, f"unknown resource {ref!r}")
    return node_id


def apply_event(result: ReplayResult, index: int, event: dict) -> None:
    if not isinstance(event, dict):
        raise EventError(index, "event must be an object")

    state = result.state
    op = event.get("op")

    try:
        if op == "add":
            kind = _text(event, index, "kind")
            position = _position(event, index)
            alias = _text(event, index, "as") if "as" in event else None
            node = state.place(kind, position)
            if alias:
                result.aliases[alias] = node.id

        elif op == "configure":
            state.select(_node_id(result, index, event, "node"))
            key = _text(event, index, "key")
            if "ref" in event:
                value = _node_id(result, index, event, "ref")
            else:
                value = _field(event, index, "value")
                if isinstance(value, (dict, list)):
                    raise EventError(index, f"'value' must be a scalar, got {value!r}")
            state.configure(key, value)

        elif op == "connect":
            source = _node_id(result, index, event, "source")
            target = _node_id(result, index, event, "target")
            outcome = state.connect(source, target)
            if outcome.accepted:
                result.accepted += 1
            else:
                result.rejected.append(outcome)

        elif op == "disconnect":
            source = _node_id(result, index, event, "source")
            target = _node_id(result, index, event, "target")
            disconnect(state.store, source, target)

        elif op == "delete":
            state.select(_node_id(result, index, event, "node"))
            state.delete_selected()

        else:
            raise EventError(index, f"unknown op {op!r}")

    except EventError:
        raise
    except InfraqError as e:
        raise EventError(index, str(e)) from e


def replay(events: List[dict], state: Optional[EditorState] = None) -> ReplayResult:
    result = ReplayResult(state=state if state is not None else EditorState())
    for index, event in enumerate(events):
        apply_event(result, index, event)
    return result


# =============================================================================
# MAIN
# =============================================================================

def setup_logging(verbose: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Generate Terraform from a replayed InfraQ editor session',
        epilog='Example: python events2tf.py session.json -o infraq.tf --check'
    )
    parser.add_argument('input', help='Events JSON file or - for stdin')
    parser.add_argument('-o', '--output', help=f'Output file or directory ({EXPORT_FILENAME} inside it), - for stdout')
    parser.add_argument('--check', action='store_true', help='Parse the output with python-hcl2 and report dangling references')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    # Read input
    try:
        if args.input == '-':
            data = json.load(sys.stdin)
        else:
            p = Path(args.input)
            if not p.exists():
                print(f"Error: {args.input} not found", file=sys.stderr)
                return 1
            data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Error: {args.input} is not valid JSON: {e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: {args.input} is not UTF-8 text: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: cannot read {args.input}: {e.strerror or e}", file=sys.stderr)
        return 1

    # Replay
    try:
        result = replay(load_events(data))
    except EventError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    text = result.state.generate()

    if args.check:
        try:
            addresses = check_syntax(text)
        except InfraqError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        for ref in dangling_references(text):
            print(f"Warning: dangling reference {ref}", file=sys.stderr)
        print(f"  HCL OK: {len(addresses)} resource block(s)", file=sys.stderr)

    # Write
    if args.output:
        name = EXPORT_FILENAME if is_directory_target(args.output) else Path(args.output).name
        try:
            path = export(text, name).save(args.output)
        except OSError as e:
            print(f"Error: cannot write {args.output}: {e.strerror or e}", file=sys.stderr)
            return 1
        if str(path) != "-":
            print(f"✓ {path}", file=sys.stderr)
    else:
        sys.stdout.write(text)

    # Stats
    store = result.state.store
    print(f"  {len(store)} resources, {len(store.edges)} connections", file=sys.stderr)
    if result.rejected:
        print(f"  {len(result.rejected)} connection(s) rejected", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
