"""
5G Network Slice Association Simulator

This package provides a discrete-time simulation of UE association to
gNBs and network slices: signal-quality evaluation, candidate ranking
and slice bandwidth allocation.
"""

__version__ = "1.0.0"
__author__ = "Carlos Lopes"
