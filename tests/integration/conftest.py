"""
Shared fixtures for integration tests.
"""

import pytest
import numpy as np


@pytest.fixture
def or_inputs():
    """Inputs of the two-input boolean functions."""
    return np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])


@pytest.fixture
def or_outputs():
    """Expected outputs of OR."""
    return np.array([[0.0], [1.0], [1.0], [1.0]])


@pytest.fixture
def check_invariants():
    """
    Return a function asserting the structural invariants of a network:
        - every edge satisfies the connection rule
        - edges and weights mirror each other exactly
        - no node lists the same destination twice
    """
    def _check(network):
        for index, node in enumerate(network.nodes):
            assert len(node.outgoing) == len(set(node.outgoing))
            for dest in node.outgoing:
                assert network.is_valid_edge(index, dest)
                assert index in network.nodes[dest].incoming
            for src in node.incoming:
                assert index in network.nodes[src].outgoing
        assert network.number_connections == network.number_edges

    return _check
