#!/usr/bin/env python3
"""
Utility script to visualize a saved network.

Usage:
    python scripts/visualize_network.py --network xor_network.npy --inputs 2 --outputs 1
"""

import sys
import argparse
import logging
from pathlib import Path

# Add the source directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from augnet.genotype      import Network
from augnet.run.config    import Config
from augnet.visualization import visualize_network


def main():
    parser = argparse.ArgumentParser(description='Visualize a saved network')
    parser.add_argument('--network', type=str, required=True,
                        help='Path to a .npy file written by Network.save')
    parser.add_argument('--inputs', type=int, required=True,
                        help='Number of input nodes of the stored network')
    parser.add_argument('--outputs', type=int, required=True,
                        help='Number of output nodes of the stored network')
    parser.add_argument('--output', type=str, default='network',
                        help='Output filename (without extension)')
    parser.add_argument('--format', type=str, default='png',
                        choices=['png', 'pdf', 'svg'],
                        help='Output format')
    parser.add_argument('--no-view', action='store_true',
                        help='Do not automatically open the generated file')

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    config             = Config()
    config.num_inputs  = args.inputs
    config.num_outputs = args.outputs

    try:
        network = Network.load(args.network, config)
    except (OSError, ValueError) as e:
        print(f"Error: could not load network from '{args.network}': {e}")
        sys.exit(1)

    dot = visualize_network(network)
    dot.render(args.output, format=args.format, view=not args.no_view, cleanup=True)
    print(f"Network visualization saved to {args.output}.{args.format}")


if __name__ == '__main__':
    main()
