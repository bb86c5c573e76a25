"""
augnet - feed-forward neural networks with evolving topology.

This package provides a NEAT-style network representation for evolutionary
search: networks are directed acyclic graphs of nodes that grow through
structural mutation (new connections, connections split by relay nodes), whose
weights evolve through random perturbation, and that can be bred with one another.

Main components:
- genotype:    Node and Network (topology, evaluation, crossover, serialization)
- run:         Configuration and the seedable random source
- activations: Transfer function used by the nodes

Example:
    >>> from augnet import Config, Network, NetRng
    >>> config = Config("network.ini")
    >>> rng = NetRng.from_config(config)
    >>> net = Network(config)
    >>> net.mutate(rng)
    >>> net.set_input([0.0, 1.0, 1.0])
    >>> outputs = net.calculate()
"""

__version__ = "0.1.0"

from augnet.run.config       import Config
from augnet.run.net_rng      import NetRng
from augnet.genotype.node    import Node, NodeType
from augnet.genotype.network import Network

__all__ = [
    "Config",
    "NetRng",
    "Node",
    "NodeType",
    "Network",
]
