"""Shared fixtures for InfraQ tests."""

import itertools

import pytest

from graph_store import EditorState, GraphStore


@pytest.fixture
def store() -> GraphStore:
    """A store with a deterministic clock: ids are <kind>-1000, <kind>-1001, ..."""
    return GraphStore(clock=itertools.count(1000).__next__)


@pytest.fixture
def state(store: GraphStore) -> EditorState:
    return EditorState(store)
