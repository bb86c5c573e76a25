"""
Run Package

Configuration and the random source shared by mutating operations.

Exported Classes:
    Config: INI-based configuration
    NetRng: Seedable random source
"""

from augnet.run.config  import Config
from augnet.run.net_rng import NetRng

__all__ = ['Config', 'NetRng']
