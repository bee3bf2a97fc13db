#!/usr/bin/env python3
"""
connections.py - Connection rule for the InfraQ resource graph

Exactly one pairing is legal: an EC2 instance with a security group, in
either direction. Accepting one appends the security group's node id to
the instance's securityGroupIds before the edge is recorded, so a
generate() right after never sees a half-applied connection.

Rejected proposals leave the graph untouched. They are logged and
returned, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from catalog import EC2, SECURITY_GROUP_IDS, SG, split_ids
from errors import InvalidConnection
from graph_store import Connection, GraphStore, ResourceNode

logger = logging.getLogger(__name__)

ALLOWED_PAIRS = {frozenset((EC2, SG))}


@dataclass(frozen=True)
class ConnectionResult:
    accepted: bool
    edge: Optional[Connection] = None
    error: Optional[InvalidConnection] = None
    duplicate: bool = False

    @property
    def reason(self) -> str:
        return self.error.reason if self.error else ""

    def __bool__(self) -> bool:
        return self.accepted


def can_connect(kind_a: str, kind_b: str) -> bool:
    return frozenset((kind_a, kind_b)) in ALLOWED_PAIRS


def _reject(source: str, target: str, reason: str) -> ConnectionResult:
    error = InvalidConnection(source, target, reason)
    logger.info("Invalid connection: %s", error)
    return ConnectionResult(accepted=False, error=error)


def _instance_and_group(a: ResourceNode, b: ResourceNode) -> Tuple[ResourceNode, ResourceNode]:
    return (a, b) if a.kind == EC2 else (b, a)


def propose_connection(store: GraphStore, source: str, target: str) -> ConnectionResult:
    if source == target:
        return _reject(source, target, "cannot connect a resource to itself")
    if source not in store or target not in store:
        missing = source if source not in store else target
        return _reject(source, target, f"unknown resource {missing}")

    src, tgt = store.get(source), store.get(target)
    if not can_connect(src.kind, tgt.kind):
        return _reject(source, target, f"{src.kind} cannot connect to {tgt.kind}")

    existing = store.find_edge(source, target)
    if existing is not None:
        logger.debug("Connection %s <-> %s already exists", source, target)
        return ConnectionResult(accepted=True, edge=existing, duplicate=True)

    instance, group = _instance_and_group(src, tgt)
    ids = split_ids(instance.config.get(SECURITY_GROUP_IDS, ""))
    if group.id not in ids:
        ids = ids + (group.id,)
    store.set_security_group_ids(instance.id, ids)
    edge = store.add_edge(source, target)

    logger.debug("Connected %s -> %s", source, target)
    return ConnectionResult(accepted=True, edge=edge)


def disconnect(store: GraphStore, source: str, target: str) -> bool:
    """Remove the connection between two resources, in either direction."""
    edge = store.find_edge(source, target)
    if edge is None:
        return False

    src, tgt = store.get(source), store.get(target)
    instance, group = _instance_and_group(src, tgt)
    ids = split_ids(instance.config.get(SECURITY_GROUP_IDS, ""))
    store.set_security_group_ids(instance.id, tuple(i for i in ids if i != group.id))
    store.remove_edge(edge)
    return True
