"""
XOR Problem with an Evolving Network

This module evolves a network solving the XOR (exclusive OR) function with a
small elitist population: every generation the best networks are kept, bred
and mutated, and the offspring replace the worst networks.

The XOR Problem:
    XOR is a two-input, one-output boolean function where the output is True
    only when the inputs differ:
        Input (0, 0) → Output 0
        Input (0, 1) → Output 1
        Input (1, 0) → Output 1
        Input (1, 1) → Output 0

    XOR is not linearly separable: a network needs at least one hidden node,
    so the run only succeeds once structural mutation has grown one.

Fitness Function:
    Fitness = 4.0 - Σ(output - target)²

    Maximum fitness of 4.0 is achieved when all four XOR cases produce exact
    outputs. The run stops when fitness exceeds the threshold.

Classes:
    EvolutionXOR: Population loop for XOR

Usage:
    python examples/evolve_XOR.py [config_file]
"""

import logging
import sys
import numpy as np
from pathlib import Path

from augnet.genotype      import Network
from augnet.run.config    import Config
from augnet.run.net_rng   import NetRng
from augnet.visualization import visualize_network

logger = logging.getLogger(__name__)

class EvolutionXOR:
    """
    Elitist evolution of networks for XOR.

    Each generation the population is ranked by fitness; the 'num_elites' best
    survive unchanged and the rest is replaced by mutated offspring of two
    randomly chosen elites.
    """

    xor_inputs  = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    xor_outputs = np.array([[0.0],      [1.0],      [1.0],      [0.0]])

    def __init__(self,
                 config: Config,
                 population_size: int = 50,
                 num_elites: int = 10,
                 mutations_per_offspring: int = 3):
        if not 2 <= num_elites <= population_size:
            raise ValueError(f"need 2 <= num_elites <= population_size, got {num_elites} and {population_size}")

        self._config                  = config
        self._rng                     = NetRng.from_config(config)
        self._population_size         = population_size
        self._num_elites              = num_elites
        self._mutations_per_offspring = mutations_per_offspring

        logger.info("Random source seed: %d", self._rng.seed)

    def _new_network(self) -> Network:
        network = Network(self._config)
        for i in range(network.num_inputs):
            network.add_connection(i, network.num_inputs)
        network.randomize(self._rng)
        return network

    def evaluate_fitness(self, network: Network) -> float:
        """Fitness is 4.0 minus the sum of squared errors over the four XOR cases."""
        fitness = 4.0
        for inputs, expected in zip(self.xor_inputs, self.xor_outputs):
            network.set_input(inputs)
            fitness -= float(np.sum((network.calculate() - expected) ** 2))
        return fitness

    def _offspring(self, elites: list[Network]) -> Network:
        i = self._rng.random_int() % len(elites)
        j = self._rng.random_int() % len(elites)
        child = Network.breed(elites[i], elites[j])
        for _ in range(self._mutations_per_offspring):
            child.mutate(self._rng)
        return child

    def run(self, max_generations: int = 2000, fitness_threshold: float = 3.9) -> tuple[Network, float]:
        """
        Evolve until a network reaches 'fitness_threshold' or 'max_generations' pass.

        Returns:
            (best network, its fitness)
        """
        population = [self._new_network() for _ in range(self._population_size)]

        best, best_fitness = None, -np.inf
        for generation in range(max_generations):
            ranked = sorted(((self.evaluate_fitness(n), n) for n in population),
                            key=lambda item: item[0], reverse=True)
            best_fitness, best = ranked[0]

            if generation % 50 == 0:
                logger.info("Generation %4d: best fitness %.4f, %d nodes, %d connections",
                            generation, best_fitness, best.number_nodes, best.number_connections)

            if best_fitness >= fitness_threshold:
                logger.info("Solved in generation %d", generation)
                break

            elites     = [network for _, network in ranked[:self._num_elites]]
            population = elites + [self._offspring(elites)
                                   for _ in range(self._population_size - self._num_elites)]

        return best, best_fitness

    def report(self, network: Network) -> None:
        """Print the truth table computed by 'network'."""
        print("\n  x1   x2 | output  target")
        for inputs, expected in zip(self.xor_inputs, self.xor_outputs):
            network.set_input(inputs)
            output = network.calculate()[0]
            print(f"  {inputs[0]:.0f}    {inputs[1]:.0f}  | {output:.4f}  {expected[0]:.0f}")
        print()
        print(network)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    config_file = sys.argv[1] if len(sys.argv) > 1 else Path(__file__).parent / "configs" / "config_xor.ini"
    config      = Config(str(config_file))

    evolution        = EvolutionXOR(config)
    network, fitness = evolution.run()
    logger.info("Final fitness: %.4f", fitness)

    evolution.report(network)
    network.save("xor_network.npy")
    visualize_network(network).render("xor_network", format="png", cleanup=True)
