"""
Network Genotype Package

This package implements the evolving network representation: a graph of nodes
addressed by index, whose topology grows through structural mutation and whose
weights evolve through perturbation and crossover.

Modules:
    node:    NodeType enumeration and Node class
    network: Network class

Exported Classes:
    NodeType: Enumeration for node roles (INPUT, HIDDEN, OUTPUT)
    Node:     A graph vertex with bias, incoming weights and outgoing edges
    Network:  Node arena with mutation, evaluation, breeding and serialization
"""

from augnet.genotype.network import Network
from augnet.genotype.node    import Node, NodeType

__all__ = ['Network',
           'Node',
           'NodeType']
