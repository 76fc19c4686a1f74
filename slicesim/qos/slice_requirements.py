"""
Per-slice-type admission requirements.

This module provides the mapping between network slice types and the minimum
link quality a UE needs before it may attach to a gNB on that slice.
"""

from typing import Dict, List, NamedTuple

from ..network.slice import SliceType


class SliceRequirements(NamedTuple):
    """Admission requirements for a slice type."""
    min_sinr: float  # dB
    min_rsrp: float  # dBm
    bandwidth_priority: float
    description: str


class SliceRequirementsMapping:
    """Slice type to admission requirements mapping."""

    _REQUIREMENTS: Dict[SliceType, SliceRequirements] = {
        SliceType.EMBB: SliceRequirements(
            5.0, -110.0, 0.7,
            "Enhanced Mobile Broadband"
        ),
        SliceType.URLLC: SliceRequirements(
            10.0, -105.0, 0.9,
            "Ultra-Reliable Low-Latency Communication"
        ),
        SliceType.MMTC: SliceRequirements(
            0.0, -120.0, 0.3,
            "Massive Machine-Type Communication"
        ),
    }

    @classmethod
    def get_requirements(cls, slice_type: SliceType) -> SliceRequirements:
        """Get admission requirements for a slice type."""
        if slice_type not in cls._REQUIREMENTS:
            raise ValueError(f"Unknown slice type: {slice_type}")
        return cls._REQUIREMENTS[slice_type]

    @classmethod
    def get_supported_types(cls) -> List[SliceType]:
        return list(cls._REQUIREMENTS.keys())

    @classmethod
    def meets_requirements(cls, slice_type: SliceType, sinr: float, rsrp: float) -> bool:
        """Check whether measured link quality satisfies the slice thresholds."""
        requirements = cls.get_requirements(slice_type)
        return not (sinr < requirements.min_sinr or rsrp < requirements.min_rsrp)

    @classmethod
    def get_default_priority(cls, slice_type: SliceType) -> float:
        """Default bandwidth priority weight for a slice type."""
        return cls.get_requirements(slice_type).bandwidth_priority
