"""
Unit tests for Network class: construction, connection rules, structural and
weight mutation, and forward evaluation.
"""

import math
import pytest
import numpy as np
from unittest.mock import Mock

from augnet.genotype      import Network, NodeType
from augnet.run.net_rng   import NetRng


def sigmoid(x):
    return 1.0 / (1.0 + math.exp(-x))


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def net(config_3x3):
    """3x3 network with input (3, 4, 5) assigned."""
    network = Network(config_3x3)
    network.set_input([3.0, 4.0, 5.0])
    return network


@pytest.fixture
def direct_net(net):
    """3x3 network with unit connections 0->3, 1->4, 2->5."""
    net.add_connection(0, 3, 1.0)
    net.add_connection(1, 4, 1.0)
    net.add_connection(2, 5, 1.0)
    return net


@pytest.fixture
def split_net(direct_net):
    """'direct_net' with each connection split by a relay node (nodes 6, 7, 8)."""
    direct_net.add_node_between(0, 3)
    direct_net.add_node_between(1, 4)
    direct_net.add_node_between(2, 5)
    return direct_net


@pytest.fixture
def scripted_rng():
    """Factory for a random source with scripted integer draws."""
    def _make(ints, delta=2.0):
        rng = Mock(spec=NetRng)
        rng.random_int.side_effect = list(ints)
        rng.mutation.return_value  = delta
        return rng
    return _make


def snapshot(network):
    return network.serialize().tolist()


# ============================================================================
# Test: Construction
# ============================================================================

class TestNetworkInit:
    """Test Network initialization."""

    def test_minimal_network(self, config_3x3):
        network = Network(config_3x3)

        assert network.num_inputs == 3
        assert network.num_outputs == 3
        assert network.number_nodes == 6
        assert network.number_nodes_hidden == 0
        assert network.number_connections == 0
        assert network.number_edges == 0
        assert network.topology_constants == (29, 7, 3)

    def test_topology_constants_from_config(self, make_config):
        config = make_config(2, 1)
        config.topology_q, config.topology_r, config.topology_s = 11, 13, 11

        assert Network(config).topology_constants == (11, 13, 11)

    @pytest.mark.parametrize("num_inputs, num_outputs", [(None, 1), (1, None), (0, 1), (1, 0)])
    def test_invalid_dimensions(self, make_config, num_inputs, num_outputs):
        with pytest.raises(ValueError):
            Network(make_config(num_inputs, num_outputs))

    def test_node_types(self, split_net):
        assert [split_net.node_type(i) for i in range(9)] == \
               [NodeType.INPUT] * 3 + [NodeType.OUTPUT] * 3 + [NodeType.HIDDEN] * 3

    def test_node_type_out_of_range(self, net):
        with pytest.raises(IndexError):
            net.node_type(6)

    def test_set_topology_constants(self, net):
        net.set_topology_constants(1, 3, 5)
        assert net.topology_constants == (1, 3, 5)

    @pytest.mark.parametrize("constants", [(0, 1, 1), (1, -3, 1), (1, 1, 2.5)])
    def test_set_topology_constants_invalid(self, net, constants):
        with pytest.raises(ValueError, match="topology constant"):
            net.set_topology_constants(*constants)


# ============================================================================
# Test: Connection Rules
# ============================================================================

class TestIsValidEdge:
    """Test the shared connection validity rule."""

    def test_output_source_invalid(self, split_net):
        for to_index in range(9):
            assert not split_net.is_valid_edge(3, to_index)

    def test_input_destination_invalid(self, split_net):
        for from_index in range(9):
            assert not split_net.is_valid_edge(from_index, 1)

    def test_output_destination_valid_from_anywhere_upstream(self, split_net):
        """Hidden nodes with larger indices may still feed outputs."""
        assert split_net.is_valid_edge(0, 5)
        assert split_net.is_valid_edge(8, 3)

    def test_hidden_destination_requires_ascending_order(self, split_net):
        assert split_net.is_valid_edge(6, 7)
        assert split_net.is_valid_edge(0, 8)
        assert not split_net.is_valid_edge(7, 6)
        assert not split_net.is_valid_edge(7, 7)

    @pytest.mark.parametrize("from_index, to_index", [(-1, 3), (0, 9), (12, 3)])
    def test_out_of_range_invalid(self, split_net, from_index, to_index):
        assert not split_net.is_valid_edge(from_index, to_index)


class TestAddConnection:
    """Test Network.add_connection and remove_connection."""

    def test_connection_recorded_on_both_ends(self, net):
        assert net.add_connection(0, 3, 0.75) is True

        assert net.nodes[0].outgoing == [3]
        assert net.nodes[3].incoming == {0: 0.75}
        assert net.number_connections == 1
        assert net.number_edges == 1

    def test_duplicate_is_noop(self, net):
        """Adding the same connection twice keeps the first weight."""
        net.add_connection(0, 3, 0.75)
        assert net.add_connection(0, 3, 5.0) is False

        assert net.nodes[0].outgoing == [3]
        assert net.nodes[3].incoming == {0: 0.75}

    def test_invalid_connections_never_change_counts(self, direct_net):
        before = (direct_net.number_nodes, direct_net.number_connections, direct_net.number_edges)

        for output_index in (3, 4, 5):
            for other in range(6):
                assert direct_net.add_connection(output_index, other, 1.0) is False
        for input_index in (0, 1, 2):
            for other in range(6):
                assert direct_net.add_connection(other, input_index, 1.0) is False

        assert (direct_net.number_nodes, direct_net.number_connections, direct_net.number_edges) == before

    def test_remove_connection(self, direct_net):
        assert direct_net.remove_connection(0, 3) is True

        assert direct_net.nodes[0].outgoing == []
        assert 0 not in direct_net.nodes[3].incoming
        assert direct_net.remove_connection(0, 3) is False

    def test_remove_then_add_again(self, direct_net):
        direct_net.remove_connection(0, 3)
        assert direct_net.add_connection(0, 3, 1.0) is True
        assert direct_net.number_connections == 3

    def test_remove_out_of_range_is_noop(self, direct_net):
        assert direct_net.remove_connection(0, 42) is False
        assert direct_net.number_connections == 3


class TestAddNodeBetween:
    """Test Network.add_node_between."""

    def test_split_existing_connection(self, direct_net):
        nodes_before = direct_net.number_nodes
        edges_before = direct_net.number_edges

        new_index = direct_net.add_node_between(0, 3)

        assert new_index == 6
        assert direct_net.number_nodes == nodes_before + 1
        assert direct_net.number_edges == edges_before + 1
        assert direct_net.nodes[0].outgoing == [6]
        assert direct_net.nodes[6].incoming == {0: 1.0}
        assert direct_net.nodes[6].outgoing == [3]
        assert direct_net.nodes[3].incoming == {6: 1.0}
        assert direct_net.nodes[6].bias == 0.0

    def test_split_missing_connection_adds_two(self, net):
        """Without an existing connection, both relay connections are still added."""
        new_index = net.add_node_between(1, 5)

        assert new_index == 6
        assert net.number_edges == 2
        assert net.nodes[1].outgoing == [6]
        assert net.nodes[5].incoming == {6: 1.0}

    def test_destination_must_be_output(self, split_net):
        before = snapshot(split_net)

        assert split_net.add_node_between(6, 7) is None
        assert split_net.add_node_between(7, 8) is None
        assert split_net.add_node_between(0, 1) is None

        assert snapshot(split_net) == before

    def test_source_must_be_valid(self, split_net):
        before = snapshot(split_net)

        assert split_net.add_node_between(4, 3) is None
        assert split_net.add_node_between(42, 3) is None

        assert snapshot(split_net) == before

    def test_hidden_source_split(self, split_net):
        """A hidden node feeding an output can be split as well."""
        new_index = split_net.add_node_between(6, 3)

        assert new_index == 9
        assert split_net.nodes[6].outgoing == [9]
        assert split_net.nodes[3].incoming == {9: 1.0}


# ============================================================================
# Test: Evaluation
# ============================================================================

class TestCalculate:
    """Test forward evaluation."""

    def test_unconnected_outputs(self, net):
        """Unconnected outputs have sum = bias = 0, hence sigmoid(0) = 0.5."""
        output = net.calculate()

        assert isinstance(output, np.ndarray)
        assert output.shape == (3,)
        np.testing.assert_allclose(output, [0.5, 0.5, 0.5], atol=1e-4)

    def test_direct_connections(self, direct_net):
        np.testing.assert_allclose(direct_net.calculate(), [0.9525, 0.9820, 0.9933], atol=1e-4)

    def test_duplicate_connections_do_not_change_output(self, direct_net):
        direct_net.add_connection(0, 3, 1.0)
        direct_net.add_connection(1, 4, 1.0)
        direct_net.add_connection(2, 5, 1.0)

        np.testing.assert_allclose(direct_net.calculate(), [0.9525, 0.9820, 0.9933], atol=1e-4)

    def test_removing_connections_restores_default(self, direct_net):
        direct_net.calculate()
        for i in range(3):
            direct_net.remove_connection(i, i + 3)

        np.testing.assert_allclose(direct_net.calculate(), [0.5, 0.5, 0.5], atol=1e-4)

    def test_rejected_connections_do_not_change_output(self, direct_net):
        direct_net.add_connection(3, 0, 1.0)
        direct_net.add_connection(4, 1, 1.0)
        direct_net.add_connection(5, 2, 1.0)

        np.testing.assert_allclose(direct_net.calculate(), [0.9525, 0.9820, 0.9933], atol=1e-4)

    def test_relay_nodes(self, split_net):
        np.testing.assert_allclose(split_net.calculate(), [0.7216, 0.7275, 0.7297], atol=1e-4)

    def test_hidden_to_hidden_connection(self, split_net):
        """Node 7 now receives 4 + sigmoid(3): only output 4 changes."""
        split_net.add_connection(6, 7, 1.0)

        expected = [sigmoid(sigmoid(3.0)), sigmoid(sigmoid(4.0 + sigmoid(3.0))), sigmoid(sigmoid(5.0))]
        output   = split_net.calculate()

        np.testing.assert_allclose(output, expected, atol=1e-9)
        np.testing.assert_allclose(output, [0.7216, 0.72968, 0.7297], atol=1e-4)

    def test_hidden_node_feeding_lower_output(self, split_net):
        """Hidden node 8 may feed output 3 although 8 > 3."""
        split_net.add_connection(8, 3, 1.0)
        expected = sigmoid(sigmoid(3.0) + sigmoid(5.0))

        assert split_net.calculate()[0] == pytest.approx(expected)

    def test_zero_weight_connection_changes_nothing(self, split_net):
        before = split_net.calculate()
        split_net.add_connection(0, 4, 0.0)

        np.testing.assert_allclose(split_net.calculate(), before)

    def test_connection_without_path_to_output_changes_nothing(self, split_net):
        """A node cut off from the outputs does not influence them."""
        split_net.remove_connection(6, 3)
        before = split_net.calculate()

        split_net.add_connection(1, 6, 5.0)

        np.testing.assert_allclose(split_net.calculate(), before)

    def test_bias_shifts_output(self, net):
        net.nodes[3].bias = 2.0
        assert net.calculate()[0] == pytest.approx(sigmoid(2.0))

    def test_inputs_persist_between_calls(self, direct_net):
        first  = direct_net.calculate()
        second = direct_net.calculate()
        np.testing.assert_array_equal(first, second)

    def test_new_input(self, direct_net):
        direct_net.set_input(np.array([0.0, 0.0, 1.0]))
        np.testing.assert_allclose(direct_net.calculate(), [0.5, 0.5, sigmoid(1.0)])

    def test_output_property(self, direct_net):
        result = direct_net.calculate()
        np.testing.assert_array_equal(direct_net.output, result)

    def test_returned_output_is_a_copy(self, direct_net):
        result = direct_net.calculate()
        result[0] = -1.0
        assert direct_net.output[0] != -1.0

    def test_wrong_input_length(self, net):
        with pytest.raises(ValueError, match="Expected 3 inputs, got 2"):
            net.set_input([1.0, 2.0])

    def test_disjoint_edge_raises(self, net):
        """An edge without a matching weight is a topology bug, not a silent zero."""
        net.nodes[0].connect_edge(3)
        with pytest.raises(RuntimeError, match="disjoint"):
            net.calculate()


# ============================================================================
# Test: Mutation
# ============================================================================

class TestMutate:
    """Test Network.mutate, mutate_topology and mutate_weight with scripted draws."""

    def test_weight_mutation_is_default(self, direct_net, scripted_rng):
        # q, r, s not all divisible -> mutate_weight: node 0 % 3 + 3 = 3, then r=2 (multiply), position 0
        rng = scripted_rng([1, 7, 3, 0, 2, 0], delta=3.0)

        assert direct_net.mutate(rng) is False
        assert direct_net.nodes[3].incoming == {0: 3.0}

    def test_topology_mutation_requires_all_three(self, net, scripted_rng):
        # q=29, r=7, s=3 all divisible; then r=1 (add connection), from=0, to=2 % 3 + 3 = 5
        rng = scripted_rng([29, 7, 3, 1, 0, 2])

        assert net.mutate(rng) is True
        assert net.nodes[5].incoming == {0: 1.0}

    def test_topology_split(self, direct_net, scripted_rng):
        # r=7 -> split; from=1, output = 1 % 3 + 3 = 4
        rng = scripted_rng([7, 1, 1])

        assert direct_net.mutate_topology(rng) is True
        assert direct_net.number_nodes == 7
        assert direct_net.nodes[1].outgoing == [6]
        assert direct_net.nodes[4].incoming == {6: 1.0}

    def test_topology_rejected_draw_is_absorbed(self, net, scripted_rng):
        # r=1 -> add connection; from=3 is an output, rejected and not retried
        rng = scripted_rng([1, 3, 0])
        before = snapshot(net)

        assert net.mutate_topology(rng) is False
        assert snapshot(net) == before
        assert rng.random_int.call_count == 3

    def test_topology_split_from_output_rejected(self, net, scripted_rng):
        rng = scripted_rng([14, 4, 0])   # 14 % 7 == 0 -> split, from=4 is an output

        assert net.mutate_topology(rng) is False
        assert net.number_nodes == 6

    def test_source_drawn_among_all_nodes(self, split_net, scripted_rng):
        # from = 15 % 9 = 6 (hidden), to = 7 % (9 - 3) + 3 = 4
        rng = scripted_rng([1, 15, 7])

        assert split_net.mutate_topology(rng) is True
        assert 6 in split_net.nodes[4].incoming

    def test_mutate_weight_skips_inputs(self, direct_net, scripted_rng):
        # node index 5 % 3 + 3 = 5, r=5 (add), position 0
        rng = scripted_rng([5, 5, 0], delta=0.5)

        direct_net.mutate_weight(rng)

        assert direct_net.nodes[5].incoming == {2: 1.5}

    def test_mutate_weight_on_weightless_node(self, net, scripted_rng):
        rng = scripted_rng([0])
        before = snapshot(net)

        net.mutate_weight(rng)

        assert snapshot(net) == before
        rng.mutation.assert_not_called()

    def test_custom_topology_constants(self, net, scripted_rng):
        """With all constants 1 every mutation is structural."""
        net.set_topology_constants(1, 1, 1)
        rng = scripted_rng([5, 5, 5, 5, 0, 0])   # r % 1 == 0 -> split, from=0, output 3

        assert net.mutate(rng) is True
        assert net.number_nodes == 7

    def test_mutation_changes_output(self, split_net):
        split_net.add_connection(6, 7, 1.0)
        before = split_net.calculate()
        rng = NetRng(seed=11)

        for _ in range(50):
            split_net.mutate(rng)

        assert not np.allclose(split_net.calculate(), before, atol=1e-4)

    def test_randomize(self, split_net):
        split_net.randomize(NetRng(seed=5))

        assert all(-1.0 <= split_net.nodes[i].bias < 1.0 for i in range(3, 9))
        assert all(split_net.nodes[i].bias == 0.0 for i in range(3))
        assert not np.allclose(split_net.calculate(), [0.7216, 0.7275, 0.7297], atol=1e-4)


# ============================================================================
# Test: Copy and Representation
# ============================================================================

class TestNetworkCopy:
    """Test Network.copy."""

    def test_copy_is_independent(self, split_net):
        clone = split_net.copy()
        clone.add_connection(6, 7, 1.0)
        clone.nodes[3].bias = 4.0
        clone.set_topology_constants(1, 1, 1)

        assert 6 not in split_net.nodes[7].incoming
        assert split_net.nodes[3].bias == 0.0
        assert split_net.topology_constants == (29, 7, 3)

    def test_copy_evaluates_identically(self, split_net):
        expected = split_net.calculate()
        np.testing.assert_allclose(split_net.copy().calculate(), expected)


class TestNetworkRepresentation:
    """Test __str__ and __repr__."""

    def test_str_lists_connections(self, split_net):
        text = str(split_net)

        assert text.startswith("input 0\n    -> 6")
        assert "output 3" in text
        assert "hidden 6\n    -> 3" in text
        assert text.count("value:") == 9

    def test_repr(self, split_net):
        assert repr(split_net) == "Network(num_inputs=3, num_outputs=3, nodes=9, connections=6)"
