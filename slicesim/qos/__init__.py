"""
Quality of Service (QoS) module for 5G slice association simulations.

This module implements the per-slice-type admission thresholds.
"""

from .slice_requirements import SliceRequirementsMapping, SliceRequirements

__all__ = ['SliceRequirementsMapping', 'SliceRequirements']
