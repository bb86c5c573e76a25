"""
Network Random Source Module

This module implements the random source threaded through every
mutating network operation.

Classes:
    NetRng: Seedable random source for mutation and randomization
"""

import logging
import numpy as np

from augnet.run.config import Config

logger = logging.getLogger(__name__)

class NetRng:
    """
    Seedable random source consumed by Node and Network mutations.

    A NetRng is an explicit capability: it is passed by reference into every call
    that needs randomness, there is no module-level generator. The seed is always
    captured, even when drawn from OS entropy, so any run can be replayed.

    The source is stateful and not thread safe; use one instance per thread.

    Public Attributes:
        seed:         The seed the current stream was started from
        mutation_min: Lower bound of the mutation delta distribution
        mutation_max: Upper bound of the mutation delta distribution
        random_range: Half-width of the symmetric distribution used by 'random()'

    Public Methods:
        random_int(): Draw a non-negative bounded integer
        mutation():   Draw a mutation delta
        random():     Draw a scalar in [-random_range, random_range)
        reseed(seed): Restart the stream from a new seed
    """

    # Exclusive upper bound of 'random_int()'
    INT_BOUND = 2 ** 31

    def __init__(self,
                 seed        : int | None = None,
                 mutation_min: float      = 0.5,
                 mutation_max: float      = 1.5,
                 random_range: float      = 1.0):
        """
        Parameters:
            seed:         Seed of the stream; if None, one is drawn from OS entropy
            mutation_min: Lower bound of the uniform mutation delta distribution
            mutation_max: Upper bound of the uniform mutation delta distribution
            random_range: Half-width of the symmetric uniform distribution of 'random()'
        """
        if mutation_min > mutation_max:
            raise ValueError(f"mutation_min ({mutation_min}) exceeds mutation_max ({mutation_max})")
        if random_range < 0:
            raise ValueError(f"random_range must be non-negative, got {random_range}")

        self.mutation_min: float = mutation_min
        self.mutation_max: float = mutation_max
        self.random_range: float = random_range
        self.reseed(seed)

    @classmethod
    def from_config(cls, config: Config) -> 'NetRng':
        """
        Create a random source from the [RANDOM] section of a configuration.

        Parameters:
            config: Stores configuration parameters

        Returns:
            A new NetRng
        """
        return cls(seed         = config.seed,
                   mutation_min = config.mutation_min,
                   mutation_max = config.mutation_max,
                   random_range = config.random_range)

    def reseed(self, seed: int | None = None) -> None:
        """
        Restart the stream.

        Parameters:
            seed: New seed; if None, one is drawn from OS entropy and captured
        """
        if seed is None:
            # Keep the seed within 63 bits so it round-trips through INI files and logs
            seed = int(np.random.SeedSequence().entropy) % (2 ** 63)
            logger.debug("Drew random seed %d", seed)
        self.seed: int = seed
        self._generator = np.random.default_rng(seed)

    def random_int(self) -> int:
        """Uniform integer in [0, INT_BOUND)."""
        return int(self._generator.integers(0, self.INT_BOUND))

    def mutation(self) -> float:
        """Uniform mutation delta in [mutation_min, mutation_max)."""
        return float(self._generator.uniform(self.mutation_min, self.mutation_max))

    def random(self) -> float:
        """Uniform scalar in [-random_range, random_range)."""
        return float(self._generator.uniform(-self.random_range, self.random_range))

    def __repr__(self):
        return (f"NetRng(seed={self.seed}, mutation_min={self.mutation_min}, "
                f"mutation_max={self.mutation_max}, random_range={self.random_range})")
