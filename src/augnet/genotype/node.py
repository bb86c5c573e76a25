"""
Network Node Module

This module implements the Node class and NodeType enumeration of
an evolving feed-forward network.

Classes:
    NodeType: Enumeration for node roles (INPUT, HIDDEN, OUTPUT)
    Node:     A graph vertex owning its bias, incoming weights and outgoing edges
"""

import math
from enum   import Enum
from typing import Sequence

from augnet.activations import sigmoid_activation
from augnet.run.net_rng import NetRng

class NodeType(Enum):
    """
    Nodes come in three roles: input, hidden, output.
    The role of a node is given by its index in the owning Network.
    """
    INPUT  = "I"
    HIDDEN = "H"
    OUTPUT = "O"

class Node:
    """
    A vertex of an evolving feed-forward network.

    A node knows its neighbours only by index. Incoming connections are stored as a
    map from source index to weight, outgoing connections as a list of destination
    indices. The owning Network keeps both sides consistent and decides which
    connections are legal; the node performs no validity checks of its own.

    Whenever weights are addressed by ordinal position (random selection during
    mutation, positional alignment during crossover, serialization) the order is
    ascending source index. It does not depend on insertion history and is
    preserved by a serialization round trip.

    During evaluation a node computes: output = sigmoid(bias + sum(weight * input))
    Input nodes bypass this and output a fixed, externally assigned value.

    Public Attributes:
        bias:     Bias, the starting value of the weighted sum
        incoming: Dictionary mapping source node index to connection weight
        outgoing: List of destination node indices
        sum:      Weighted sum accumulated during the current evaluation
        output:   Output computed by the last evaluation (or the fixed input value)

    Public Methods:
        connect_edge(dest):           Record an outgoing connection
        connect_weight(weight, src):  Record an incoming weight, unless one exists
        remove_edge(dest):            Forget every outgoing connection to 'dest'
        remove_weight(src):           Forget the incoming weight from 'src'
        set_fixed_output(value):      Assign the output of an input node
        reset_sum():                  Start a new evaluation
        accumulate(value, src):       Add a weighted input to the sum
        calculate():                  Apply the transfer function
        mutate(rng):                  Stochastically perturb one weight or the bias
        randomize(rng):               Replace all weights and the bias by random values
        combined(other):              Crossover result as a new node
        combine_with(other):          Crossover in place
        serialize(data):              Append the node record to a flat list

    Class Methods:
        deserialize(data, start): Decode a node record from a flat sequence
    """

    # Mutation cascade: the first modulus dividing the draw selects the operation.
    # Each entry: (modulus, target, operation), target is "weight" or "bias".
    _MUTATIONS = ((2,  "weight", "mul"),
                  (3,  "bias",   "mul"),
                  (5,  "weight", "add"),
                  (7,  "bias",   "add"),
                  (11, "weight", "sub"),
                  (13, "bias",   "sub"))

    def __init__(self, bias: float = 0.0, output: float = 0.0):
        """
        Initialize a node without connections.

        Parameters:
            bias:   Bias added to the weighted sum
            output: Initial output value (meaningful for input nodes only)
        """
        self.bias    : float            = bias
        self.incoming: dict[int, float] = {}   # source index => weight
        self.outgoing: list[int]        = []   # destination indices
        self.sum     : float            = bias
        self.output  : float            = output

    @property
    def weight_sources(self) -> list[int]:
        """Source indices of the incoming weights, in ordinal (ascending) order."""
        return sorted(self.incoming)

    def connect_edge(self, dest: int) -> None:
        """Record an outgoing connection to node 'dest'."""
        self.outgoing.append(dest)

    def connect_weight(self, weight: float, src: int) -> bool:
        """
        Record the weight of an incoming connection from node 'src'.

        There is at most one weight per source; a second weight
        for the same source is ignored.

        Parameters:
            weight: Connection weight
            src:    Index of the source node

        Returns:
            True if the weight was inserted, False if 'src' already had one
        """
        if src in self.incoming:
            return False
        self.incoming[src] = weight
        return True

    def remove_edge(self, dest: int) -> None:
        """Remove every outgoing connection to node 'dest'."""
        self.outgoing = [e for e in self.outgoing if e != dest]

    def remove_weight(self, src: int) -> bool:
        """
        Remove the incoming weight from node 'src', if any.

        Returns:
            True if a weight was removed
        """
        return self.incoming.pop(src, None) is not None

    def set_fixed_output(self, value: float) -> None:
        """Assign the output of an input node (no transfer function)."""
        self.output = float(value)

    def reset_sum(self) -> None:
        self.sum = self.bias

    def accumulate(self, value: float, src: int) -> None:
        """
        Add the contribution of the node 'src' to the weighted sum.

        Parameters:
            value: Output of the source node
            src:   Index of the source node

        Raises:
            RuntimeError: if this node has no weight for 'src', which means the
                          network topology is inconsistent
        """
        if src not in self.incoming:
            raise RuntimeError(f"node is disjoint: no incoming weight from node {src}")
        self.sum += value * self.incoming[src]

    def calculate(self) -> None:
        self.output = float(sigmoid_activation(self.sum))

    @classmethod
    def mutation_branch(cls, r: int) -> tuple[str, str] | None:
        """
        Select the mutation operation encoded by the random integer 'r'.

        The moduli are tested in order and the first one dividing 'r' wins, so a
        later branch is never taken when an earlier modulus also divides 'r'
        (e.g. r=6 multiplies a weight, it never multiplies the bias).

        Returns:
            (target, operation) or None if no modulus divides 'r'
        """
        for modulus, target, operation in cls._MUTATIONS:
            if r % modulus == 0:
                return target, operation
        return None

    def mutate(self, rng: NetRng) -> None:
        """
        Stochastically perturb one incoming weight or the bias.

        A node without incoming weights is never mutated. Otherwise two integers
        are drawn: the first selects the operation (see 'mutation_branch'), the
        second the weight by ordinal position. The operation multiplies, adds or
        subtracts a mutation delta drawn from 'rng'.

        Parameters:
            rng: Random source
        """
        if not self.incoming:
            return

        r     = rng.random_int()
        index = rng.random_int() % len(self.incoming)
        src   = self.weight_sources[index]

        branch = self.mutation_branch(r)
        if branch is None:
            return

        target, operation = branch
        delta = rng.mutation()
        value = self.incoming[src] if target == "weight" else self.bias
        if operation == "mul":
            value *= delta
        elif operation == "add":
            value += delta
        else:
            value -= delta

        if target == "weight":
            self.incoming[src] = value
        else:
            self.bias = value

    def randomize(self, rng: NetRng) -> None:
        """Replace every incoming weight and the bias by 'rng.random()' draws."""
        for src in self.weight_sources:
            self.incoming[src] = rng.random()
        self.bias = rng.random()

    @staticmethod
    def _cross_weights(w1: float, w2: float) -> float:
        # Geometric mean of magnitudes, negative weights are dominant
        sign = -1.0 if (w1 < 0.0 or w2 < 0.0) else 1.0
        return sign * math.sqrt(abs(w1 * w2))

    def combined(self, other: 'Node') -> 'Node':
        """
        Crossover of this node with 'other', returned as a new node.

        Weights are aligned by ordinal position, not by source index: the i-th
        weight of this node is crossed with the i-th weight of 'other' for every
        position both nodes have. Weights of this node beyond that prefix are
        kept. The bias becomes the mean of both biases. Edges are those of this node.

        Parameters:
            other: The node to cross with (left untouched)

        Returns:
            New node holding the crossover result
        """
        child = self.copy()
        for src1, src2 in zip(self.weight_sources, other.weight_sources):
            child.incoming[src1] = self._cross_weights(self.incoming[src1], other.incoming[src2])
        child.bias = (self.bias + other.bias) * 0.5
        return child

    def combine_with(self, other: 'Node') -> None:
        """In-place version of 'combined': this node takes the crossover result."""
        child         = self.combined(other)
        self.incoming = child.incoming
        self.bias     = child.bias

    def copy(self) -> 'Node':
        """Independent value copy (transient evaluation state included)."""
        node          = Node(self.bias, self.output)
        node.incoming = dict(self.incoming)
        node.outgoing = list(self.outgoing)
        node.sum      = self.sum
        return node

    def serialize(self, data: list[float]) -> None:
        """
        Append the node record to 'data':
            [edge count, weight count, bias, edges..., (source, weight) pairs...]
        """
        data.append(float(len(self.outgoing)))
        data.append(float(len(self.incoming)))
        data.append(float(self.bias))
        data.extend(float(dest) for dest in self.outgoing)
        for src in self.weight_sources:
            data.append(float(src))
            data.append(float(self.incoming[src]))

    @staticmethod
    def _decode_int(value: float, what: str) -> int:
        # Counts and indices are stored as reals and truncated, like a C cast
        try:
            decoded = int(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"can't deserialize node, invalid {what} '{value}'") from e
        if decoded < 0:
            raise ValueError(f"can't deserialize node, negative {what} '{decoded}'")
        return decoded

    @classmethod
    def deserialize(cls, data: Sequence[float], start: int = 0) -> tuple['Node', int]:
        """
        Decode a node record written by 'serialize'.

        Parameters:
            data:  Flat sequence of reals
            start: Position of the record within 'data'

        Returns:
            (node, position just after the record)

        Raises:
            ValueError: if the record is truncated, declares a negative count
                        or contains a negative index
        """
        if len(data) - start < 3:
            raise ValueError("can't deserialize node, not enough data")

        num_edges   = cls._decode_int(data[start],     "edge count")
        num_weights = cls._decode_int(data[start + 1], "weight count")
        bias        = float(data[start + 2])

        needed = num_edges + 2 * num_weights
        if len(data) - start - 3 < needed:
            raise ValueError(f"can't deserialize node, record needs {needed} values "
                             f"but only {len(data) - start - 3} remain")

        node = cls(bias)

        edge_offset = start + 3
        for i in range(num_edges):
            node.connect_edge(cls._decode_int(data[edge_offset + i], "connection index"))

        weight_offset = edge_offset + num_edges
        for i in range(num_weights):
            src    = cls._decode_int(data[weight_offset + 2 * i], "weight index")
            weight = float(data[weight_offset + 2 * i + 1])
            node.connect_weight(weight, src)

        return node, weight_offset + 2 * num_weights

    def __repr__(self):
        return (f"Node(bias={self.bias:+.6f}, incoming={self.incoming}, "
                f"outgoing={self.outgoing}, output={self.output:+.6f})")
