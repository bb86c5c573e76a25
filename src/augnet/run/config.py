import configparser
import logging
import os

logger = logging.getLogger(__name__)

class Config:

    @staticmethod
    def _check_dimension(name, value):
        """
        Validate a network dimension read from the configuration file.
        Dimensions are required there, so "None" is rejected as well.

        Parameters:
            name:  Name of the option (used in the error message)
            value: The value to validate

        Returns:
            The value, unchanged
        """
        if value is None or value < 1:
            raise ValueError(f"'{name}' must be a positive integer, got {value}")
        return value

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a default Config.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a Config with default values for manual
                         attribute setting; 'num_inputs' and 'num_outputs' are left
                         as None and must be set before building a Network.
        """

        # Default config for testing/manual setup
        if config_file is None:
            self.num_inputs  = None
            self.num_outputs = None

            # Set defaults for the topology shape constants
            self.topology_q = 29
            self.topology_r = 7
            self.topology_s = 3

            # Set defaults for the random source
            self.seed         = None
            self.mutation_min = 0.5
            self.mutation_max = 1.5
            self.random_range = 1.0

            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser(inline_comment_prefixes=(';', '#'))
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise

        # [NETWORK]

        # The number of input nodes, through which the network receives inputs.
        # Input nodes occupy indices [0, num_inputs).
        self.num_inputs = self._check_dimension('num_inputs', get_value('NETWORK', 'num_inputs', int))

        # The number of output nodes, to which the network delivers outputs.
        # Output nodes occupy indices [num_inputs, num_inputs + num_outputs).
        self.num_outputs = self._check_dimension('num_outputs', get_value('NETWORK', 'num_outputs', int))

        # [TOPOLOGY] (optional section)

        # A mutation is structural only if three independent random integers are
        # divisible by 'topology_q', 'topology_r' and 'topology_s' respectively;
        # otherwise it perturbs a weight or a bias. Within a structural mutation,
        # a draw divisible by 'topology_r' splits a connection with a new node,
        # any other draw adds a connection.
        self.topology_q = get_value('TOPOLOGY', 'topology_q', int, default=29)
        self.topology_r = get_value('TOPOLOGY', 'topology_r', int, default=7)
        self.topology_s = get_value('TOPOLOGY', 'topology_s', int, default=3)

        # [RANDOM] (optional section)

        # Seed of the random source. "None" draws a fresh seed from OS entropy.
        self.seed = get_value('RANDOM', 'seed', int, default=None)

        # The range of the uniform distribution from which mutation deltas are
        # drawn (used both as a multiplier and as an additive change).
        self.mutation_min = get_value('RANDOM', 'mutation_min', float, default=0.5)
        self.mutation_max = get_value('RANDOM', 'mutation_max', float, default=1.5)

        # Weights and biases drawn by 'randomize' are uniform in [-random_range, random_range).
        self.random_range = get_value('RANDOM', 'random_range', float, default=1.0)

        if self.mutation_min > self.mutation_max:
            raise ValueError(f"'mutation_min' ({self.mutation_min}) exceeds 'mutation_max' ({self.mutation_max})")

        logger.info("Loaded configuration '%s' (%d inputs, %d outputs)",
                    config_file, self.num_inputs, self.num_outputs)
