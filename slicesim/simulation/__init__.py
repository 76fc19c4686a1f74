"""
Simulation module for 5G slice association simulations.

This module provides the main simulation engine and metrics collection.
"""

from .engine import SimulationEngine, SimulationConfig, TickReport
from .metrics import MetricsCollector, SimulationResults

__all__ = ['SimulationEngine', 'SimulationConfig', 'TickReport',
           'MetricsCollector', 'SimulationResults']
