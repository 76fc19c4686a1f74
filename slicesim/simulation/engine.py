"""
Main simulation engine for 5G slice association simulations.

This module builds the network topology and drives the per-tick loop:
UE mobility, random connection drops, and slice-aware (re)attachment.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import simpy

from ..mobility.user_equipment import (UserEquipment, Position, ConnectionAttempt,
                                       MAX_CONNECTION_ATTEMPTS, BACKOFF_UNIT)
from ..network.channel import (ChannelModel, FREQUENCY_5G_LOW, FREQUENCY_5G_HIGH,
                               DEFAULT_SHADOW_STD, DEFAULT_INTERFERENCE)
from ..network.gnb import GNodeB, DEFAULT_GNB_HEIGHT
from ..network.slice import NetworkSlice, SliceRegistry, SliceType
from ..qos.slice_requirements import SliceRequirementsMapping
from .metrics import MetricsCollector, SimulationResults

logger = logging.getLogger(__name__)


def _default_gnbs() -> List[Dict[str, Any]]:
    return [
        {"position": [0, 0], "frequency": FREQUENCY_5G_LOW, "tx_power": 40.0},
        {"position": [1000, 1000], "frequency": FREQUENCY_5G_HIGH, "tx_power": 30.0},
        {"position": [0, 1000], "frequency": FREQUENCY_5G_LOW, "tx_power": 40.0},
        {"position": [1000, 0], "frequency": FREQUENCY_5G_HIGH, "tx_power": 30.0},
    ]


def _default_slices() -> List[Dict[str, Any]]:
    return [
        {"slice_type": "eMBB", "priority": 0.7, "capacity": 100.0},
        {"slice_type": "URLLC", "priority": 0.9, "capacity": 50.0},
        {"slice_type": "mMTC", "priority": 0.3, "capacity": 200.0},
    ]


@dataclass
class SimulationConfig:
    """Configuration parameters for the simulation."""
    simulation_steps: int = 10
    time_step: float = 1.0  # seconds
    random_seed: Optional[int] = None
    log_level: str = "INFO"

    # Network configuration
    gnbs: List[Dict[str, Any]] = field(default_factory=_default_gnbs)
    gnb_height: float = DEFAULT_GNB_HEIGHT  # meters
    slices: List[Dict[str, Any]] = field(default_factory=_default_slices)

    # UE configuration
    num_ues: int = 50
    area_size: float = 1000.0  # meters
    slice_mix: List[float] = field(default_factory=lambda: [70, 20, 10])  # eMBB, URLLC, mMTC
    min_bandwidth: int = 5  # MHz
    max_bandwidth: int = 24  # MHz
    min_speed: int = 1  # m/s
    max_speed: int = 5  # m/s
    ue_specs: Optional[List[Dict[str, Any]]] = None

    # Connection configuration
    drop_probability: float = 0.1
    max_connection_attempts: int = MAX_CONNECTION_ATTEMPTS
    backoff_unit: float = BACKOFF_UNIT  # seconds

    # Channel configuration
    shadow_std: float = DEFAULT_SHADOW_STD  # dB
    interference_dbm: float = DEFAULT_INTERFERENCE

    # Output configuration
    output_file: Optional[str] = None
    enable_visualization: bool = False


@dataclass
class TickReport:
    """Aggregate status after one simulation tick."""
    step: int
    time: float
    connected: int
    total: int
    slice_distribution: Dict[SliceType, int]
    attempts: List[ConnectionAttempt]
    dropped: List[int]
    slice_remaining: Dict[int, float]

    @property
    def connection_rate(self) -> float:
        return self.connected / self.total if self.total > 0 else 0.0


class SimulationEngine:
    """Main simulation engine for 5G slice association simulations."""

    SLICE_ORDER = [SliceType.EMBB, SliceType.URLLC, SliceType.MMTC]

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.rng = np.random.default_rng(config.random_seed)
        self.env = simpy.Environment()
        self.channel_model = ChannelModel(
            shadow_std=config.shadow_std,
            interference_dbm=config.interference_dbm
        )
        self.metrics_collector = MetricsCollector()

        self.gnbs: Dict[int, GNodeB] = {}
        self.slices = SliceRegistry()
        self.ues: Dict[int, UserEquipment] = {}

        self.current_step = 0
        self.running = False
        self.initialized = False

    @property
    def current_time(self) -> float:
        return float(self.env.now)

    def initialize(self):
        """Build the gNBs, slices and UE population and restart the clock."""
        self.env = simpy.Environment()
        self.metrics_collector = MetricsCollector()
        self.current_step = 0

        self.gnbs = {}
        self.slices = SliceRegistry()
        self.ues = {}

        self._initialize_gnbs()
        self._initialize_slices()
        self._initialize_ues()
        self.initialized = True

        logger.info(f"Topology ready: {len(self.gnbs)} gNBs, {len(self.slices)} slices, "
                    f"{len(self.ues)} UEs")

    def _initialize_gnbs(self):
        for i, spec in enumerate(self.config.gnbs, start=1):
            x, y = spec["position"]
            gnb_id = spec.get("gnb_id", i)
            if gnb_id in self.gnbs:
                raise ValueError(f"Duplicate gNB id: {gnb_id}")
            self.gnbs[gnb_id] = GNodeB(
                gnb_id=gnb_id,
                position=Position(float(x), float(y)),
                frequency=float(spec["frequency"]),
                tx_power=float(spec["tx_power"]),
                height=float(spec.get("height", self.config.gnb_height)),
                channel_model=self.channel_model
            )

    def _initialize_slices(self):
        for i, spec in enumerate(self.config.slices, start=1):
            slice_type = SliceType(spec["slice_type"])
            priority = spec.get("priority", SliceRequirementsMapping.get_default_priority(slice_type))
            self.slices.add(NetworkSlice(
                slice_id=spec.get("slice_id", i),
                slice_type=slice_type,
                priority=float(priority),
                capacity=float(spec["capacity"])
            ))

        # Every gNB shares every slice
        for gnb in self.gnbs.values():
            for slice_id in self.slices.ids():
                gnb.add_slice(slice_id)

    def _initialize_ues(self):
        specs = self.config.ue_specs or self._random_ue_specs()

        for i, spec in enumerate(specs, start=1):
            x, y = spec["position"]
            ue_id = spec.get("ue_id", i)
            if ue_id in self.ues:
                raise ValueError(f"Duplicate UE id: {ue_id}")
            self.ues[ue_id] = UserEquipment(
                ue_id=ue_id,
                initial_position=Position(float(x), float(y)),
                speed=float(spec["speed"]),
                required_slice=SliceType(spec["slice_type"]),
                required_bandwidth=float(spec["required_bandwidth"]),
                max_connection_attempts=self.config.max_connection_attempts,
                backoff_unit=self.config.backoff_unit
            )

    def _random_ue_specs(self) -> List[Dict[str, Any]]:
        """Draw a random UE population from the configured distributions."""
        weights = np.asarray(self.config.slice_mix, dtype=float)
        weights = weights / weights.sum()

        specs = []
        for _ in range(self.config.num_ues):
            slice_index = self.rng.choice(len(self.SLICE_ORDER), p=weights)
            specs.append({
                "position": self.rng.uniform(0, self.config.area_size, size=2).tolist(),
                "speed": int(self.rng.integers(self.config.min_speed, self.config.max_speed + 1)),
                "slice_type": self.SLICE_ORDER[slice_index].value,
                "required_bandwidth": int(self.rng.integers(self.config.min_bandwidth,
                                                            self.config.max_bandwidth + 1)),
            })
        return specs

    def tick(self) -> TickReport:
        """Advance every UE by one step and report aggregate status."""
        if not self.initialized:
            self.initialize()

        now = self.current_time
        gnbs = list(self.gnbs.values())
        attempts: List[ConnectionAttempt] = []
        dropped: List[int] = []

        for ue_id in sorted(self.ues):
            ue = self.ues[ue_id]
            ue.move(self.config.time_step, self.rng)

            if ue.is_connected and self.rng.random() < self.config.drop_probability:
                ue.disconnect(self.slices)
                dropped.append(ue_id)

            if ue.can_attempt(now):
                attempts.append(ue.connect(gnbs, self.slices, self.rng, now))

        report = self._build_report(attempts, dropped)
        self.metrics_collector.add_measurement(report)
        self.current_step += 1
        return report

    def _build_report(self, attempts: List[ConnectionAttempt], dropped: List[int]) -> TickReport:
        distribution = {slice_type: 0 for slice_type in self.SLICE_ORDER}
        connected = 0
        for ue in self.ues.values():
            if ue.is_connected:
                connected += 1
                distribution[ue.required_slice] += 1

        return TickReport(
            step=self.current_step + 1,
            time=self.current_time,
            connected=connected,
            total=len(self.ues),
            slice_distribution=distribution,
            attempts=attempts,
            dropped=dropped,
            slice_remaining={s.slice_id: s.remaining for s in self.slices}
        )

    def _tick_process(self, steps: int, reports: List[TickReport]):
        for _ in range(steps):
            reports.append(self.tick())
            yield self.env.timeout(self.config.time_step)

    def run(self, steps: Optional[int] = None) -> SimulationResults:
        """
        Run `steps` ticks sequentially (defaults to the configured step count).

        The clock and step counter continue from any earlier run, but the
        returned metrics cover only the ticks of this call.
        """
        steps = self.config.simulation_steps if steps is None else steps
        if not self.initialized:
            self.initialize()

        logger.info(f"Starting simulation: {steps} steps of {self.config.time_step}s")
        self.running = True
        start_time = time.time()
        reports: List[TickReport] = []
        self.metrics_collector = MetricsCollector()

        try:
            self.env.process(self._tick_process(steps, reports))
            self.env.run()
        finally:
            self.running = False

        execution_time = time.time() - start_time
        logger.info(f"Simulation completed in {execution_time:.2f} seconds")

        results = self.metrics_collector.generate_results(
            slices=list(self.slices),
            ues=list(self.ues.values())
        )
        results.reports = reports
        results.execution_time = execution_time
        results.config = self.config
        return results

    def reset_ue(self, ue_id: int):
        """Re-enable connection attempts for a UE that exhausted its retries."""
        self.ues[ue_id].reset_attempts()

    def get_current_state(self) -> Dict[str, Any]:
        """Get current simulation state."""
        return {
            'current_time': self.current_time,
            'current_step': self.current_step,
            'running': self.running,
            'gnbs': {gnb_id: gnb.get_statistics() for gnb_id, gnb in self.gnbs.items()},
            'slices': {s.slice_id: s.get_statistics() for s in self.slices},
            'ues': {ue_id: ue.get_statistics() for ue_id, ue in self.ues.items()}
        }
