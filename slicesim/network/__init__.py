"""
Network module for 5G slice association simulations.

This module implements gNB (base station) functionality, the channel model
and the network slice resource pools.
"""

from .gnb import GNodeB
from .channel import ChannelModel, SignalMetrics
from .slice import NetworkSlice, SliceRegistry, SliceType, ResourceReleaseError

__all__ = ['GNodeB', 'ChannelModel', 'SignalMetrics', 'NetworkSlice',
           'SliceRegistry', 'SliceType', 'ResourceReleaseError']
