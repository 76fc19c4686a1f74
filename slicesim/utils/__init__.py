"""
Utility modules for 5G slice association simulations.

This module provides configuration management and visualization utilities.
"""

from .config import ConfigManager
from .visualization import NetworkVisualizer

__all__ = ['ConfigManager', 'NetworkVisualizer']
