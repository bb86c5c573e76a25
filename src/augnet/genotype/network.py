"""
Evolving Network Module

This module implements the Network class: a feed-forward network whose topology
grows through structural mutation and which can be bred with another network.

Classes:
    Network: Node arena with topology mutation, evaluation, crossover and serialization
"""

import logging
import numpy as np
from pathlib import Path
from typing  import Sequence

from augnet.genotype.node import Node, NodeType
from augnet.run.config    import Config
from augnet.run.net_rng   import NetRng

logger = logging.getLogger(__name__)

class Network:
    """
    A feed-forward network with an evolving topology.

    The network is an arena of nodes addressed by dense index:
        - Input nodes:  [0, num_inputs)
        - Output nodes: [num_inputs, num_inputs + num_outputs)
        - Hidden nodes: [num_inputs + num_outputs, ...)

    A new network has only input and output nodes and no connections. Hidden nodes
    are only created by splitting a connection ('add_node_between') and are never
    removed. Connections can be added and removed.

    Acyclicity is guaranteed by index order rather than by cycle detection. Every
    connection must satisfy 'is_valid_edge':
        - nothing leaves an output node
        - nothing enters an input node
        - anything else may enter an output node
        - otherwise the source index must be smaller than the destination index
    Hence one ascending sweep over the hidden nodes, followed by the output nodes,
    evaluates the network; no topological sort is needed.

    Structural mutations that would violate these rules, or duplicate an existing
    connection, are silently ignored. Mutation attempts are speculative, so a
    rejected one is part of normal operation and is only reported through the
    return value.

    Public Properties:
        num_inputs:          Number of input nodes
        num_outputs:         Number of output nodes
        number_nodes:        Total number of nodes
        number_nodes_hidden: Number of hidden nodes
        number_connections:  Number of incoming weights over all nodes
        number_edges:        Number of outgoing edges over all nodes
        output:              Outputs computed by the last 'calculate()'

    Public Methods:
        is_valid_edge(from_index, to_index):        Whether a connection may exist
        add_connection(from_index, to_index, w):    Add a weighted connection
        remove_connection(from_index, to_index):    Remove a connection
        add_node_between(from_index, to_index):     Split a connection into an output
        mutate(rng):                                Topology or weight mutation
        mutate_topology(rng):                       Random structural mutation
        mutate_weight(rng):                         Random weight/bias mutation
        randomize(rng):                             Randomize all weights and biases
        set_topology_constants(q, r, s):            Change the mutation shape constants
        set_input(values):                          Assign the input vector
        calculate():                                Forward evaluation
        copy():                                     Independent value copy
        serialize() / deserialize(data):            Flat numeric stream
        save(path):                                 Write the stream to a .npy file

    Class Methods:
        load(path, config): Build a network from a .npy file

    Static Methods:
        breed(parent1, parent2): Crossover of two networks
    """

    def __init__(self, config: Config):
        """
        Initialize a network with input and output nodes only and no connections.

        Parameters:
            config: Stores configuration parameters ('num_inputs', 'num_outputs'
                    and the topology constants 'topology_q/r/s')
        """
        if config.num_inputs is None or config.num_inputs < 1:
            raise ValueError(f"A network needs at least one input node, got {config.num_inputs}")
        if config.num_outputs is None or config.num_outputs < 1:
            raise ValueError(f"A network needs at least one output node, got {config.num_outputs}")

        self._config     : Config = config
        self._num_inputs : int    = config.num_inputs
        self._num_outputs: int    = config.num_outputs

        self.set_topology_constants(config.topology_q, config.topology_r, config.topology_s)

        # Input nodes have a fixed output, initially zero
        self.nodes: list[Node] = [Node(output=0.0) for _ in range(self._num_inputs)]
        self.nodes.extend(Node() for _ in range(self._num_outputs))

        self._output: np.ndarray = np.zeros(self._num_outputs)

    @property
    def num_inputs(self) -> int:
        return self._num_inputs

    @property
    def num_outputs(self) -> int:
        return self._num_outputs

    @property
    def number_nodes(self) -> int:
        """Total number of nodes in the network."""
        return len(self.nodes)

    @property
    def number_nodes_hidden(self) -> int:
        """Number of hidden nodes in the network."""
        return len(self.nodes) - self._num_inputs - self._num_outputs

    @property
    def number_connections(self) -> int:
        """Total number of connections (incoming weights) in the network."""
        return sum(len(node.incoming) for node in self.nodes)

    @property
    def number_edges(self) -> int:
        """Total number of outgoing edges in the network."""
        return sum(len(node.outgoing) for node in self.nodes)

    @property
    def output(self) -> np.ndarray:
        """Outputs computed by the last call to 'calculate()'."""
        return self._output.copy()

    @property
    def topology_constants(self) -> tuple[int, int, int]:
        return self._q, self._r, self._s

    def set_topology_constants(self, q: int, r: int, s: int) -> None:
        """
        Set the constants shaping the mutation distribution.

        A mutation is structural when three random integers are divisible by
        'q', 'r' and 's' respectively; larger constants make it rarer. Within a
        structural mutation, 'r' also decides between splitting a connection
        (draw divisible by 'r') and adding one.

        Raises:
            ValueError: if any constant is not a positive integer
        """
        for name, value in (('q', q), ('r', r), ('s', s)):
            if not isinstance(value, (int, np.integer)) or value < 1:
                raise ValueError(f"topology constant '{name}' must be a positive integer, got {value!r}")
        self._q, self._r, self._s = int(q), int(r), int(s)

    def _is_input(self, index: int) -> bool:
        return 0 <= index < self._num_inputs

    def _is_output(self, index: int) -> bool:
        return self._num_inputs <= index < self._num_inputs + self._num_outputs

    def node_type(self, index: int) -> NodeType:
        """The role of the node at 'index'."""
        if not 0 <= index < len(self.nodes):
            raise IndexError(f"node index {index} out of range [0, {len(self.nodes)})")
        if self._is_input(index):
            return NodeType.INPUT
        if self._is_output(index):
            return NodeType.OUTPUT
        return NodeType.HIDDEN

    def is_valid_edge(self, from_index: int, to_index: int) -> bool:
        """
        Whether a connection 'from_index' -> 'to_index' keeps the network a DAG
        that a single ascending sweep can evaluate.
        """
        return self._edge_allowed(from_index, to_index, len(self.nodes))

    def _edge_allowed(self, from_index: int, to_index: int, num_nodes: int) -> bool:
        # Both ends must exist
        if not (0 <= from_index < num_nodes and 0 <= to_index < num_nodes):
            return False
        # Outputs terminate the graph
        if self._is_output(from_index):
            return False
        # Inputs never receive
        if self._is_input(to_index):
            return False
        # Paths may converge on outputs from anywhere upstream
        if self._is_output(to_index):
            return True
        return from_index < to_index

    def add_connection(self, from_index: int, to_index: int, weight: float = 1.0) -> bool:
        """
        Add a weighted connection.

        The connection is recorded on both ends or not at all. Invalid or
        duplicate connections are ignored.

        Parameters:
            from_index: Index of the source node
            to_index:   Index of the destination node
            weight:     Connection weight

        Returns:
            True if the connection was added
        """
        if not self.is_valid_edge(from_index, to_index):
            logger.debug("Rejected connection %d -> %d: invalid edge", from_index, to_index)
            return False

        if not self.nodes[to_index].connect_weight(weight, from_index):
            logger.debug("Rejected connection %d -> %d: duplicate", from_index, to_index)
            return False

        self.nodes[from_index].connect_edge(to_index)
        return True

    def remove_connection(self, from_index: int, to_index: int) -> bool:
        """
        Remove the connection 'from_index' -> 'to_index' from both ends.

        Returns:
            True if a weight was removed
        """
        if not (0 <= from_index < len(self.nodes) and 0 <= to_index < len(self.nodes)):
            return False
        self.nodes[from_index].remove_edge(to_index)
        return self.nodes[to_index].remove_weight(from_index)

    def add_node_between(self, from_index: int, to_index: int) -> int | None:
        """
        Split the connection 'from_index' -> 'to_index' with a relay node.

        Only connections into an output node can be split. A new hidden node is
        appended, the connection is removed and replaced by two unit-weight
        connections: 'from_index' -> new node -> 'to_index'. If the connection
        did not exist the two new connections are added all the same.

        Returns:
            Index of the new node, or None if the split was rejected
        """
        if not self._is_output(to_index):
            logger.debug("Rejected split %d -> %d: destination is not an output", from_index, to_index)
            return None

        if not self.is_valid_edge(from_index, to_index):
            logger.debug("Rejected split %d -> %d: invalid edge", from_index, to_index)
            return None

        self.nodes.append(Node())
        new_index = len(self.nodes) - 1

        self.nodes[from_index].remove_edge(to_index)
        self.nodes[to_index].remove_weight(from_index)

        self.add_connection(from_index, new_index, 1.0)
        self.add_connection(new_index, to_index, 1.0)
        return new_index

    def mutate_topology(self, rng: NetRng) -> bool:
        """
        Attempt one random structural mutation.

        The source node is drawn among all nodes and the destination independently
        of it: an output for a split, any non-input node for a new connection.
        Draws violating the connection rules have no effect and are not retried.

        Parameters:
            rng: Random source

        Returns:
            True if the topology changed
        """
        r          = rng.random_int()
        from_index = rng.random_int() % len(self.nodes)

        # Splits are rarer than new connections
        if r % self._r == 0:
            to_index = (rng.random_int() % self._num_outputs) + self._num_inputs
            return self.add_node_between(from_index, to_index) is not None

        not_input_size = len(self.nodes) - self._num_inputs
        to_index = (rng.random_int() % not_input_size) + self._num_inputs
        return self.add_connection(from_index, to_index, 1.0)

    def mutate_weight(self, rng: NetRng) -> None:
        """Mutate a random non-input node (input nodes have no weights)."""
        not_input_size = len(self.nodes) - self._num_inputs
        node_index     = (rng.random_int() % not_input_size) + self._num_inputs
        self.nodes[node_index].mutate(rng)

    def mutate(self, rng: NetRng) -> bool:
        """
        Apply one mutation: structural if three independent draws are divisible by
        the three topology constants, otherwise a weight/bias mutation.

        Parameters:
            rng: Random source

        Returns:
            True if the topology changed
        """
        q = rng.random_int()
        r = rng.random_int()
        s = rng.random_int()

        if q % self._q == 0 and r % self._r == 0 and s % self._s == 0:
            return self.mutate_topology(rng)

        self.mutate_weight(rng)
        return False

    def randomize(self, rng: NetRng) -> None:
        """Randomize weights and biases of all non-input nodes."""
        for node in self.nodes[self._num_inputs:]:
            node.randomize(rng)

    def set_input(self, values: Sequence[float]) -> None:
        """
        Assign the network inputs. They persist until the next call.

        Parameters:
            values: One value per input node
        """
        if len(values) != self._num_inputs:
            raise ValueError(f"Expected {self._num_inputs} inputs, got {len(values)}")
        for node, value in zip(self.nodes, values):
            node.set_fixed_output(value)

    def _propagate(self, index: int) -> None:
        node = self.nodes[index]
        for dest in node.outgoing:
            self.nodes[dest].accumulate(node.output, index)

    def calculate(self) -> np.ndarray:
        """
        Perform a forward pass with the current inputs.

        Returns:
            The output of every output node

        Raises:
            RuntimeError: if an edge has no matching weight on its destination
        """
        for node in self.nodes:
            node.reset_sum()

        # Input nodes have fixed outputs, only propagate them
        for i in range(self._num_inputs):
            self._propagate(i)

        # Hidden nodes, in index order; every source of a hidden node has a smaller index
        for i in range(self._num_inputs + self._num_outputs, len(self.nodes)):
            self.nodes[i].calculate()
            self._propagate(i)

        # Output nodes have no outgoing edges, nothing to propagate
        for k in range(self._num_outputs):
            node = self.nodes[self._num_inputs + k]
            node.calculate()
            self._output[k] = node.output

        return self._output.copy()

    def copy(self) -> 'Network':
        """Independent value copy of the network (no node is shared)."""
        network = Network.__new__(Network)
        network._config      = self._config
        network._num_inputs  = self._num_inputs
        network._num_outputs = self._num_outputs
        network._q, network._r, network._s = self._q, self._r, self._s
        network.nodes   = [node.copy() for node in self.nodes]
        network._output = self._output.copy()
        return network

    @staticmethod
    def breed(parent1: 'Network', parent2: 'Network') -> 'Network':
        """
        Cross two networks.

        The offspring starts as a copy of 'parent1'. From every input node a
        depth-first walk follows both parents' edge lists in lockstep: at each
        position both lists have, if they name the same destination, the
        offspring's node there is crossed with 'parent2's node (see
        'Node.combine_with') and the walk descends into it. Where the lists
        diverge the walk stops, so nodes it never reaches keep 'parent1's values.
        A node reachable along several aligned paths is crossed once per path.

        The result is biased towards 'parent1': breed(a, b) and breed(b, a)
        generally differ. breed(a, a) reproduces 'a'.

        Parameters:
            parent1: Supplies the structure and the values of unaligned nodes
            parent2: Supplies crossover partners only

        Returns:
            New network; neither parent is modified
        """
        if (parent1.num_inputs, parent1.num_outputs) != (parent2.num_inputs, parent2.num_outputs):
            raise ValueError(f"Cannot breed a {parent1.num_inputs}x{parent1.num_outputs} network "
                             f"with a {parent2.num_inputs}x{parent2.num_outputs} network")

        offspring = parent1.copy()
        crossed   = 0

        for i in range(parent1.num_inputs):
            # Each stack entry: (edges in offspring, edges in parent2, next position)
            stack = [(parent1.nodes[i].outgoing, parent2.nodes[i].outgoing, 0)]
            while stack:
                edges1, edges2, position = stack.pop()
                if position >= min(len(edges1), len(edges2)):
                    continue

                # Resume this node at the next position once the subtree is done
                stack.append((edges1, edges2, position + 1))

                dest = edges1[position]
                if dest != edges2[position]:
                    continue

                node1 = offspring.nodes[dest]
                node2 = parent2.nodes[dest]
                node1.combine_with(node2)
                crossed += 1
                stack.append((node1.outgoing, node2.outgoing, 0))

        logger.debug("Bred %d-node and %d-node networks, %d node crossovers",
                     parent1.number_nodes, parent2.number_nodes, crossed)
        return offspring

    def serialize(self) -> np.ndarray:
        """
        Flatten the network into a vector of reals:
            [num_inputs, num_outputs, node count, node record 0, node record 1, ...]
        See 'Node.serialize' for the node record layout.
        """
        data = [float(self._num_inputs), float(self._num_outputs), float(len(self.nodes))]
        for node in self.nodes:
            node.serialize(data)
        return np.array(data, dtype=np.float64)

    @staticmethod
    def _decode_header(value: float, what: str) -> int:
        try:
            return int(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"can't deserialize network, invalid {what} '{value}'") from e

    def _check_decoded(self, nodes: list[Node]) -> None:
        """
        Verify that decoded nodes satisfy the connection rule and that edges and
        weights mirror each other one to one.

        Raises:
            ValueError: on the first violation found
        """
        num_nodes = len(nodes)
        for index, node in enumerate(nodes):
            for neighbour in node.outgoing + node.weight_sources:
                if neighbour >= num_nodes:
                    raise ValueError(f"can't deserialize network, node {index} refers to "
                                     f"node {neighbour} but there are only {num_nodes} nodes")

            if len(set(node.outgoing)) != len(node.outgoing):
                raise ValueError(f"can't deserialize network, node {index} lists an edge twice")

            for dest in node.outgoing:
                if index not in nodes[dest].incoming:
                    raise ValueError(f"can't deserialize network, edge {index} -> {dest} "
                                     f"has no weight")

            for src in node.weight_sources:
                if not self._edge_allowed(src, index, num_nodes):
                    raise ValueError(f"can't deserialize network, invalid connection {src} -> {index}")
                if index not in nodes[src].outgoing:
                    raise ValueError(f"can't deserialize network, weight {src} -> {index} "
                                     f"has no edge")

    def deserialize(self, data: Sequence[float]) -> None:
        """
        Replace the whole state of this network by the one encoded in 'data'.

        Decoding happens into a new node list; on error this network is left
        unchanged.

        Parameters:
            data: Vector produced by 'serialize'

        Raises:
            ValueError: if the dimensions differ from this network's, a count or
                        index is not finite, negative or out of range, the data is
                        truncated, or the decoded connections break the
                        connection rule or do not mirror each other
        """
        if len(data) < 3:
            raise ValueError(f"can't deserialize network, header needs 3 values, got {len(data)}")

        num_inputs = self._decode_header(data[0], "input count")
        if num_inputs != self._num_inputs:
            raise ValueError(f"can't deserialize network, expected {self._num_inputs} inputs "
                             f"but got {num_inputs}")

        num_outputs = self._decode_header(data[1], "output count")
        if num_outputs != self._num_outputs:
            raise ValueError(f"can't deserialize network, expected {self._num_outputs} outputs "
                             f"but got {num_outputs}")

        num_nodes = self._decode_header(data[2], "node count")
        if num_nodes < self._num_inputs + self._num_outputs:
            raise ValueError(f"can't deserialize network, invalid node count {num_nodes}")

        nodes = []
        start = 3
        for _ in range(num_nodes):
            node, start = Node.deserialize(data, start)
            nodes.append(node)

        self._check_decoded(nodes)

        if start < len(data):
            logger.debug("Ignored %d trailing values after network record", len(data) - start)

        self.nodes   = nodes
        self._output = np.zeros(self._num_outputs)
        logger.debug("Deserialized network with %d nodes and %d connections",
                     self.number_nodes, self.number_connections)

    def save(self, path: str | Path) -> None:
        """Write the serialized network to a .npy file."""
        np.save(path, self.serialize())

    @classmethod
    def load(cls, path: str | Path, config: Config) -> 'Network':
        """
        Build a network from a file written by 'save'.

        Parameters:
            path:   Path of the .npy file
            config: Configuration; its dimensions must match the stored network

        Returns:
            The loaded network
        """
        network = cls(config)
        network.deserialize(np.load(path))
        return network

    def __str__(self):
        lines = []
        for index, node in enumerate(self.nodes):
            role = self.node_type(index)
            lines.append(f"{role.name.lower()} {index}")
            for dest in node.outgoing:
                lines.append(f"    -> {dest}")
            lines.append(f"    value: {node.output}")
        return "\n".join(lines)

    def __repr__(self):
        return (f"Network(num_inputs={self._num_inputs}, num_outputs={self._num_outputs}, "
                f"nodes={self.number_nodes}, connections={self.number_connections})")
