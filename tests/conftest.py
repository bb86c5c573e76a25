"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add the source directory to the Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir / "src"))


@pytest.fixture
def make_config():
    """Factory for default configurations with the given dimensions."""
    from augnet.run.config import Config

    def _make(num_inputs=3, num_outputs=3):
        config = Config()
        config.num_inputs  = num_inputs
        config.num_outputs = num_outputs
        return config

    return _make


@pytest.fixture
def config_3x3(make_config):
    """Configuration of a network with 3 inputs and 3 outputs."""
    return make_config(3, 3)


@pytest.fixture
def rng():
    """Seeded random source."""
    from augnet.run.net_rng import NetRng
    return NetRng(seed=42)
