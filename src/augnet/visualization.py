"""
Network Visualization Module

Renders a Network as a Graphviz graph.

Functions:
    visualize_network: Build (and optionally display) a graphviz.Digraph of a network
"""

import graphviz  # type: ignore

from augnet.genotype import Network, NodeType

_NODE_ATTRS = {
    NodeType.INPUT : {'fillcolor': 'lightgrey', 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '5', 'width': '0.5', 'height': '0.5', 'fixedsize': 'true'},
    NodeType.HIDDEN: {'fillcolor': 'lightblue', 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '5', 'width': '0.5', 'height': '0.5', 'fixedsize': 'true'},
    NodeType.OUTPUT: {'fillcolor': 'white'    , 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '5', 'width': '0.5', 'height': '0.5', 'fixedsize': 'true'}
}

_CLUSTERS = ((NodeType.INPUT,  'cluster_input',  'source', 'Inputs'),
             (NodeType.HIDDEN, 'cluster_hidden', 'same',   'Hidden'),
             (NodeType.OUTPUT, 'cluster_output', 'sink',   'Outputs'))

def visualize_network(network: Network, view: bool = False) -> graphviz.Digraph:
    """
    Visualize a network using Graphviz.

    Nodes are grouped by role, left to right. Each edge is labelled with the weight
    stored on its destination node; positive weights are drawn in blue, negative
    ones in red.

    Parameters:
        network: The network to draw
        view:    If True, render and open the visualization (requires the Graphviz binaries)

    Returns:
        graphviz.Digraph object representing the network
    """
    dot = graphviz.Digraph()
    dot.attr(rankdir='LR')
    dot.attr('graph', labelloc='t')

    for node_type, name, rank, label in _CLUSTERS:
        indices = [i for i in range(network.number_nodes) if network.node_type(i) == node_type]
        if not indices:
            continue
        with dot.subgraph(name=name) as cluster:
            cluster.attr(rank=rank, label=label, style='invisible')
            for index in indices:
                attrs = _NODE_ATTRS[node_type].copy()
                attrs['label'] = f"id={index}\\nbias={network.nodes[index].bias:.2f}"
                cluster.node(str(index), **attrs)

    for from_index, node in enumerate(network.nodes):
        for to_index in node.outgoing:
            weight = network.nodes[to_index].incoming.get(from_index, 0.0)
            dot.edge(str(from_index), str(to_index),
                     label      = f"w={weight:.2f}",
                     color      = 'blue' if weight >= 0 else 'red',
                     fontsize   = '5',
                     penwidth   = '0.5',
                     arrowsize  = '0.5',
                     labelfloat = 'false')

    if view:
        dot.view(cleanup=True)

    return dot
