"""
Network slice resource pools for 5G slice association simulations.

A slice is a shared bandwidth budget with a service-type tag and a priority
weight. gNBs reference slices by identifier through a SliceRegistry, so a
debit seen through one gNB is visible from every other gNB hosting the slice.
"""

import logging
from enum import Enum
from threading import Lock
from typing import Dict, Iterator, List

logger = logging.getLogger(__name__)

# Requests below this amount are rejected outright
MIN_ALLOCATION = 0.1
RELEASE_TOLERANCE = 1e-9


class SliceType(Enum):
    """Supported network slice service types."""
    EMBB = "eMBB"
    URLLC = "URLLC"
    MMTC = "mMTC"


class ResourceReleaseError(ValueError):
    """Raised when a release would return bandwidth that was never allocated."""


class NetworkSlice:
    """
    Network slice resource pool.

    The advertised availability is weighted by the slice priority, and a
    single allocation never exceeds that weighted figure.
    """

    def __init__(self, slice_id: int, slice_type: SliceType, priority: float, capacity: float):
        if not 0.0 <= priority <= 1.0:
            raise ValueError(f"Slice priority must be in [0, 1], got {priority}")
        if capacity < 0:
            raise ValueError(f"Slice capacity must be non-negative, got {capacity}")

        self.slice_id = slice_id
        self.slice_type = slice_type
        self.priority = priority
        self.capacity = float(capacity)
        self.remaining = float(capacity)
        self._lock = Lock()

        self.stats = {
            'allocations': 0,
            'rejected_allocations': 0,
            'releases': 0,
            'total_allocated': 0.0
        }

    @property
    def name(self) -> str:
        return self.slice_type.value

    @property
    def utilization(self) -> float:
        """Fraction of capacity currently allocated."""
        if self.capacity == 0:
            return 0.0
        return 1.0 - self.remaining / self.capacity

    def check_available(self) -> float:
        """Priority-weighted available bandwidth."""
        return self.remaining * self.priority

    def allocate(self, requested: float) -> float:
        """
        Allocate bandwidth from the slice.

        Args:
            requested: Requested bandwidth in MHz

        Returns:
            Granted bandwidth in MHz (0 if the request is below the floor)
        """
        with self._lock:
            if requested < MIN_ALLOCATION:
                self.stats['rejected_allocations'] += 1
                return 0.0

            granted = min(requested, self.remaining * self.priority)
            self.remaining -= granted

            if granted > 0:
                self.stats['allocations'] += 1
                self.stats['total_allocated'] += granted
            else:
                self.stats['rejected_allocations'] += 1

        logger.debug(f"Slice {self.slice_id} ({self.name}) granted {granted:.2f}/{requested:.2f}")
        return granted

    def release(self, amount: float):
        """
        Return previously allocated bandwidth to the slice.

        Raises:
            ResourceReleaseError: If the amount is negative or the release would
                push remaining bandwidth above capacity
        """
        with self._lock:
            if amount < 0:
                raise ResourceReleaseError(f"Cannot release negative bandwidth: {amount}")
            if self.remaining + amount > self.capacity + RELEASE_TOLERANCE:
                raise ResourceReleaseError(
                    f"Release of {amount} on slice {self.slice_id} exceeds allocated bandwidth "
                    f"({self.capacity - self.remaining} allocated)"
                )
            self.remaining = min(self.capacity, self.remaining + amount)
            self.stats['releases'] += 1

        logger.debug(f"Slice {self.slice_id} ({self.name}) released {amount:.2f}")

    def get_statistics(self) -> Dict:
        """Get slice statistics."""
        stats = self.stats.copy()
        stats.update({
            'slice_id': self.slice_id,
            'slice_type': self.name,
            'priority': self.priority,
            'capacity': self.capacity,
            'remaining': self.remaining,
            'utilization': self.utilization
        })
        return stats

    def __repr__(self) -> str:
        return (f"NetworkSlice(id={self.slice_id}, type={self.name}, "
                f"remaining={self.remaining:.2f}/{self.capacity:.2f})")


class SliceRegistry:
    """Arena of network slices indexed by stable identifier."""

    def __init__(self):
        self._slices: Dict[int, NetworkSlice] = {}

    def add(self, network_slice: NetworkSlice) -> NetworkSlice:
        if network_slice.slice_id in self._slices:
            raise ValueError(f"Duplicate slice id: {network_slice.slice_id}")
        self._slices[network_slice.slice_id] = network_slice
        return network_slice

    def get(self, slice_id: int) -> NetworkSlice:
        """Look up a slice by id; raises KeyError for unknown ids."""
        return self._slices[slice_id]

    def ids(self) -> List[int]:
        return list(self._slices.keys())

    def __contains__(self, slice_id: int) -> bool:
        return slice_id in self._slices

    def __iter__(self) -> Iterator[NetworkSlice]:
        return iter(self._slices.values())

    def __len__(self) -> int:
        return len(self._slices)
