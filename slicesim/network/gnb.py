"""
gNodeB (gNB) Implementation for 5G Slice Association Simulation

This module implements the gNB (5G base station) with link evaluation
towards UEs and the set of network slices it hosts.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Any

from .channel import ChannelModel, SignalMetrics, DEFAULT_UE_HEIGHT
from .slice import NetworkSlice, SliceRegistry

if TYPE_CHECKING:
    from ..mobility.user_equipment import Position

logger = logging.getLogger(__name__)

DEFAULT_GNB_HEIGHT = 25.0  # meters
DEFAULT_ANTENNA_GAIN = 10.0  # dBi


class GNodeB:
    """
    5G gNodeB (Base Station) Implementation

    Features:
    - Fixed location, carrier frequency and transmit power
    - Link metric evaluation towards a UE position
    - Shared references to the network slices it hosts
    """

    def __init__(self, gnb_id: int, position: 'Position', frequency: float, tx_power: float,
                 height: float = DEFAULT_GNB_HEIGHT, antenna_gain: float = DEFAULT_ANTENNA_GAIN,
                 channel_model: Optional[ChannelModel] = None):
        self.gnb_id = gnb_id
        self.position = position
        self.frequency = frequency  # Carrier frequency in Hz
        self.tx_power = tx_power  # dBm
        self.height = height
        self.antenna_gain = antenna_gain
        self.channel_model = channel_model or ChannelModel()

        self._slice_ids: List[int] = []

        logger.info(f"gNB {gnb_id} initialized at ({position.x}, {position.y}) "
                    f"on {frequency / 1e9:.1f} GHz, {tx_power} dBm")

    @property
    def slice_ids(self) -> Tuple[int, ...]:
        return tuple(self._slice_ids)

    def add_slice(self, slice_id: int):
        """Host a network slice on this gNB (setup time only)."""
        if slice_id not in self._slice_ids:
            self._slice_ids.append(slice_id)

    def hosted_slices(self, registry: SliceRegistry) -> List[NetworkSlice]:
        """Resolve the hosted slices, in hosting order."""
        return [registry.get(slice_id) for slice_id in self._slice_ids]

    def evaluate(self, ue_position: 'Position', rng,
                 ue_height: float = DEFAULT_UE_HEIGHT) -> SignalMetrics:
        """
        Evaluate the link towards a UE.

        Args:
            ue_position: UE position
            rng: numpy Generator for the shadowing draw
            ue_height: UE height in meters

        Returns:
            SignalMetrics for this evaluation
        """
        return self.channel_model.compute_metrics(
            self.position, self.height, self.frequency, self.tx_power,
            self.antenna_gain, ue_position, rng, ue_height
        )

    def get_statistics(self) -> Dict[str, Any]:
        """Get gNB statistics"""
        return {
            'gnb_id': self.gnb_id,
            'position': (self.position.x, self.position.y),
            'frequency': self.frequency,
            'tx_power': self.tx_power,
            'height': self.height,
            'slices': list(self._slice_ids)
        }
