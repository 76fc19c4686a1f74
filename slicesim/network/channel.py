"""
Channel model for 5G slice association simulations.

This module implements the 3GPP urban macro large-scale path loss, log-normal
shadowing and the SINR/RSRP/RSSI link metrics used to score gNB candidates.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..mobility.user_equipment import Position

SPEED_OF_LIGHT = 3e8  # m/s
BOLTZMANN_CONSTANT = 1.380649e-23  # J/K
TEMPERATURE = 290.0  # Kelvin
NOISE_FIGURE = 5.0  # dB
NOISE_BANDWIDTH = 10e6  # Hz

FREQUENCY_5G_LOW = 600e6  # Hz (Sub-6 GHz)
FREQUENCY_5G_HIGH = 28e9  # Hz (mmWave)

DEFAULT_UE_HEIGHT = 1.5  # meters
DEFAULT_SHADOW_STD = 8.0  # dB

# Placeholder for a real interference model
DEFAULT_INTERFERENCE = -90.0  # dBm


def thermal_noise_power(bandwidth_hz: float, temperature: float = TEMPERATURE) -> float:
    """
    Calculate thermal noise power kTB.

    Args:
        bandwidth_hz: Bandwidth in Hz
        temperature: Receiver temperature in Kelvin

    Returns:
        Noise power in dBm
    """
    noise_power_linear = BOLTZMANN_CONSTANT * temperature * bandwidth_hz
    return 10 * math.log10(noise_power_linear / 1e-3)


NOISE_POWER_DBM = thermal_noise_power(NOISE_BANDWIDTH) + NOISE_FIGURE


@dataclass(frozen=True)
class SignalMetrics:
    """Link quality between a gNB and a UE."""
    sinr: float  # dB
    rsrp: float  # dBm
    rssi: float  # dBm

    @property
    def is_viable(self) -> bool:
        return math.isfinite(self.rsrp)


UNREACHABLE = SignalMetrics(-math.inf, -math.inf, -math.inf)


class ChannelModel:
    """Urban macro channel model for 5G NR links."""

    def __init__(self, shadow_std: float = DEFAULT_SHADOW_STD,
                 interference_dbm: float = DEFAULT_INTERFERENCE,
                 noise_power_dbm: float = NOISE_POWER_DBM):
        self.shadow_std = shadow_std
        self.interference_dbm = interference_dbm
        self.noise_power_dbm = noise_power_dbm

    @staticmethod
    def breakpoint_distance(tx_height: float, rx_height: float, frequency: float) -> float:
        """Breakpoint distance in meters separating the LOS and NLOS regimes."""
        return 4 * (tx_height - 1) * (rx_height - 1) * frequency / SPEED_OF_LIGHT

    def calculate_path_loss(self, distance: float, tx_height: float,
                            rx_height: float, frequency: float) -> float:
        """
        3GPP Urban Macro path loss (38.901).

        Args:
            distance: Distance in meters
            tx_height: Transmitter height in meters
            rx_height: Receiver height in meters
            frequency: Carrier frequency in Hz

        Returns:
            Path loss in dB
        """
        breakpoint = self.breakpoint_distance(tx_height, rx_height, frequency)
        frequency_ghz = frequency / 1e9

        if distance < breakpoint:
            return 28.0 + 22 * math.log10(distance) + 20 * math.log10(frequency_ghz)
        return (28.0 + 40 * math.log10(distance) + 20 * math.log10(frequency_ghz)
                - 9 * math.log10(breakpoint**2 + distance**2))

    def calculate_interference(self, ue_position: 'Position') -> float:
        """Interference power in dBm seen at the UE position."""
        return self.interference_dbm

    @staticmethod
    def calculate_sinr(signal_power_dbm: float, interference_power_dbm: float,
                       noise_power_dbm: float) -> float:
        """
        Calculate Signal-to-Interference-plus-Noise Ratio (SINR).

        Interference and noise are combined in the linear domain.

        Returns:
            SINR in dB
        """
        interference_linear = 10**(interference_power_dbm/10)
        noise_linear = 10**(noise_power_dbm/10)
        return signal_power_dbm - 10 * math.log10(interference_linear + noise_linear)

    @staticmethod
    def calculate_rssi(signal_power_dbm: float, interference_power_dbm: float,
                       noise_power_dbm: float) -> float:
        """Total received power (signal + interference + noise) in dBm."""
        total_linear = (10**(signal_power_dbm/10) + 10**(interference_power_dbm/10)
                        + 10**(noise_power_dbm/10))
        return 10 * math.log10(total_linear)

    def compute_metrics(self, ap_position: 'Position', ap_height: float, frequency: float,
                        tx_power: float, antenna_gain: float, ue_position: 'Position',
                        rng, ue_height: float = DEFAULT_UE_HEIGHT) -> SignalMetrics:
        """
        Compute link metrics between a gNB and a UE.

        Args:
            ap_position: gNB position
            ap_height: gNB antenna height in meters
            frequency: Carrier frequency in Hz
            tx_power: Transmit power in dBm
            antenna_gain: gNB antenna gain in dBi
            ue_position: UE position
            rng: numpy Generator used for the shadowing draw
            ue_height: UE height in meters

        Returns:
            SignalMetrics for this evaluation
        """
        distance = math.hypot(ap_position.x - ue_position.x, ap_position.y - ue_position.y)
        interference = self.calculate_interference(ue_position)

        if distance == 0:
            rsrp = tx_power
            sinr = rsrp - self.noise_power_dbm
            return SignalMetrics(sinr, rsrp,
                                 self.calculate_rssi(rsrp, interference, self.noise_power_dbm))

        if not math.isfinite(distance):
            return UNREACHABLE

        try:
            path_loss = self.calculate_path_loss(distance, ap_height, ue_height, frequency)
        except ValueError:
            # log10 of a non-positive frequency
            return UNREACHABLE
        if not math.isfinite(path_loss):
            return UNREACHABLE

        shadowing = rng.normal(0.0, self.shadow_std)
        rsrp = tx_power - path_loss + antenna_gain - shadowing
        sinr = self.calculate_sinr(rsrp, interference, self.noise_power_dbm)
        rssi = self.calculate_rssi(rsrp, interference, self.noise_power_dbm)

        return SignalMetrics(float(sinr), float(rsrp), float(rssi))
