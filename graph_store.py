#!/usr/bin/env python3
"""
graph_store.py - In-memory resource graph for InfraQ

Holds the resource nodes placed from the palette and the connections
accepted between them. Node order is insertion order and is the order
the generator emits blocks in.

Mutation points:
    add_node       - place a resource (empty config)
    set_config     - property form edit of one key
    remove_node    - delete a resource and every connection touching it
    add_edge / remove_edge / set_security_group_ids
                   - used only by connections.py

Everything else reads through snapshot(), which returns deep copies.
"""

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from catalog import (
    EC2,
    SECURITY_GROUP_IDS,
    kind_info,
    split_ids,
)
from errors import ConfigKeyError, ReadOnlyConfigKey, UnknownNodeError

logger = logging.getLogger(__name__)


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class ResourceNode:
    id: str
    kind: str
    position: Tuple[float, float] = (0.0, 0.0)   # UI only
    config: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Connection:
    source: str
    target: str

    def touches(self, node_id: str) -> bool:
        return node_id in (self.source, self.target)

    def joins(self, a: str, b: str) -> bool:
        return {self.source, self.target} == {a, b}


@dataclass(frozen=True)
class Snapshot:
    nodes: Tuple[ResourceNode, ...]
    edges: Tuple[Connection, ...]


def _millis() -> int:
    return int(time.time() * 1000)


# =============================================================================
# GRAPH STORE
# =============================================================================

class GraphStore:
    """Single source of truth for the nodes and connections of one graph."""

    def __init__(self, clock: Callable[[], int] = _millis):
        self._clock = clock
        self._nodes: Dict[str, ResourceNode] = {}
        self._edges: List[Connection] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self._nodes.values())

    @property
    def edges(self) -> Tuple[Connection, ...]:
        return tuple(self._edges)

    def get(self, node_id: str) -> ResourceNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            nodes=tuple(copy.deepcopy(n) for n in self._nodes.values()),
            edges=tuple(self._edges),
        )

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def _new_id(self, kind: str) -> str:
        base = f"{kind}-{self._clock()}"
        node_id = base
        n = 2
        while node_id in self._nodes:
            node_id = f"{base}-{n}"
            n += 1
        return node_id

    def add_node(self, kind: str, position: Tuple[float, float] = (0.0, 0.0)) -> ResourceNode:
        kind_info(kind)  # unknown kinds raise
        node = ResourceNode(id=self._new_id(kind), kind=kind, position=tuple(position))
        self._nodes[node.id] = node
        logger.debug("Placed %s", node.id)
        return node

    def set_config(self, node_id: str, key: str, value: str) -> ResourceNode:
        """Property form edit of a single key."""
        node = self.get(node_id)
        spec = kind_info(node.kind).key(key)
        if spec is None:
            raise ConfigKeyError(f"{key!r} is not a {node.kind} setting")
        if spec.read_only:
            raise ReadOnlyConfigKey(f"{key!r} is derived from connections")
        node.config[key] = "" if value is None else str(value)
        return node

    def move_node(self, node_id: str, position: Tuple[float, float]) -> ResourceNode:
        node = self.get(node_id)
        node.position = tuple(position)
        return node

    def remove_node(self, node_id: str) -> ResourceNode:
        """Delete a node, its connections, and any sg references to it."""
        node = self._nodes.pop(node_id, None)
        if node is None:
            raise UnknownNodeError(node_id)

        dropped = [e for e in self._edges if e.touches(node_id)]
        self._edges = [e for e in self._edges if not e.touches(node_id)]

        for other in self._nodes.values():
            if other.kind == EC2 and node_id in split_ids(other.config.get(SECURITY_GROUP_IDS, "")):
                self._strip_security_group(other, node_id)

        logger.debug("Deleted %s and %d connection(s)", node_id, len(dropped))
        return node

    # -------------------------------------------------------------------------
    # Connections (written by connections.py only)
    # -------------------------------------------------------------------------

    def find_edge(self, a: str, b: str) -> Optional[Connection]:
        for edge in self._edges:
            if edge.joins(a, b):
                return edge
        return None

    def add_edge(self, source: str, target: str) -> Connection:
        self.get(source)
        self.get(target)
        edge = Connection(source, target)
        self._edges.append(edge)
        return edge

    def remove_edge(self, edge: Connection) -> None:
        self._edges.remove(edge)

    def set_security_group_ids(self, node_id: str, ids: Tuple[str, ...]) -> None:
        node = self.get(node_id)
        if ids:
            node.config[SECURITY_GROUP_IDS] = ",".join(ids)
        else:
            node.config.pop(SECURITY_GROUP_IDS, None)

    def _strip_security_group(self, node: ResourceNode, sg_id: str) -> None:
        ids = split_ids(node.config.get(SECURITY_GROUP_IDS, ""))
        self.set_security_group_ids(node.id, tuple(i for i in ids if i != sg_id))


# =============================================================================
# EDITOR STATE
# =============================================================================

class EditorState:
    """Application state owned by whatever presents the graph.

    Carries the graph and the currently selected node, and routes every
    gesture to the core components.
    """

    def __init__(self, store: Optional[GraphStore] = None):
        self.store = store if store is not None else GraphStore()
        self.selected: Optional[str] = None

    def place(self, kind: str, position: Tuple[float, float] = (0.0, 0.0)) -> ResourceNode:
        return self.store.add_node(kind, position)

    def select(self, node_id: Optional[str]) -> Optional[ResourceNode]:
        if node_id is None:
            self.selected = None
            return None
        node = self.store.get(node_id)
        self.selected = node_id
        return node

    def configure(self, key: str, value: str) -> ResourceNode:
        if self.selected is None:
            raise UnknownNodeError("no node selected")
        return self.store.set_config(self.selected, key, value)

    def connect(self, source: str, target: str):
        from connections import propose_connection
        return propose_connection(self.store, source, target)

    def delete_selected(self) -> Optional[ResourceNode]:
        if self.selected is None:
            return None
        node = self.store.remove_node(self.selected)
        self.selected = None
        return node

    def generate(self) -> str:
        from graph2tf import generate
        snap = self.store.snapshot()
        return generate(snap.nodes, snap.edges)

    def export(self, filename: Optional[str] = None):
        from export import EXPORT_FILENAME, export
        return export(self.generate(), filename or EXPORT_FILENAME)
