"""
User Equipment (UE) for 5G slice association simulations.

This module provides the UE random-walk mobility model and the connection
state machine: candidate evaluation over all gNBs and slices, ranking, and
bandwidth allocation/release on the chosen slice.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..network.slice import SliceType, SliceRegistry
from ..qos.slice_requirements import SliceRequirementsMapping

logger = logging.getLogger(__name__)

MAX_CONNECTION_ATTEMPTS = 5
BACKOFF_UNIT = 0.1  # seconds per failed attempt
ADMISSION_HEADROOM = 0.5  # fraction of the request a slice must advertise

SINR_WEIGHT = 0.7
RSRP_WEIGHT = 0.2
BANDWIDTH_WEIGHT = 0.1


@dataclass
class Position:
    """2D position with coordinates."""
    x: float
    y: float

    def distance_to(self, other: 'Position') -> float:
        """Calculate distance to another position."""
        return math.sqrt((self.x - other.x)**2 + (self.y - other.y)**2)


class ConnectionOutcome(Enum):
    """Result of a single connection attempt."""
    CONNECTED = "connected"
    REJECTED = "rejected"
    NO_CANDIDATE = "no_candidate"


@dataclass(frozen=True)
class Connection:
    """Active association of a UE to a gNB on a slice."""
    gnb_id: int
    slice_id: int
    slice_type: SliceType
    allocated_bandwidth: float
    sinr: float
    rsrp: float
    established_at: float = 0.0


@dataclass(frozen=True)
class ConnectionCandidate:
    """A (gNB, slice) pair that passed the signal thresholds."""
    gnb_id: int
    slice_id: int
    sinr: float
    rsrp: float
    available_bandwidth: float

    @property
    def score(self) -> float:
        return (SINR_WEIGHT * self.sinr + RSRP_WEIGHT * self.rsrp
                + BANDWIDTH_WEIGHT * self.available_bandwidth)


@dataclass(frozen=True)
class ConnectionAttempt:
    """Structured outcome of UserEquipment.connect()."""
    ue_id: int
    outcome: ConnectionOutcome
    attempt: int
    requested_bandwidth: float
    gnb_id: Optional[int] = None
    slice_id: Optional[int] = None
    slice_type: Optional[SliceType] = None
    granted_bandwidth: Optional[float] = None
    sinr: Optional[float] = None
    rsrp: Optional[float] = None
    available_bandwidth: Optional[float] = None
    stations_in_range: int = 0

    @property
    def connected(self) -> bool:
        return self.outcome == ConnectionOutcome.CONNECTED


class AlreadyConnectedError(RuntimeError):
    """Raised when connect() is called on a UE that is already connected."""


def rank_candidates(candidates: Iterable[ConnectionCandidate]) -> List[ConnectionCandidate]:
    """
    Rank candidates by score, best first.

    The sort is stable, so candidates with equal scores keep their
    enumeration order.
    """
    return sorted(candidates, key=lambda c: c.score, reverse=True)


class UserEquipment:
    """User Equipment with random-walk mobility and slice-aware attachment."""

    def __init__(self, ue_id: int, initial_position: Position, speed: float,
                 required_slice: SliceType, required_bandwidth: float,
                 max_connection_attempts: int = MAX_CONNECTION_ATTEMPTS,
                 backoff_unit: float = BACKOFF_UNIT):
        self.ue_id = ue_id
        self.current_position = Position(initial_position.x, initial_position.y)
        self.initial_position = initial_position
        self.speed = speed  # m/s
        self.required_slice = required_slice
        self.required_bandwidth = required_bandwidth  # MHz
        self.max_connection_attempts = max_connection_attempts
        self.backoff_unit = backoff_unit

        self.connection: Optional[Connection] = None
        self.connection_attempts = 0
        self.retry_at = 0.0
        self.trajectory: List[Position] = [Position(initial_position.x, initial_position.y)]

        self.stats = {
            'connections': 0,
            'disconnections': 0,
            'failed_attempts': 0,
            'total_attempts': 0
        }

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    @property
    def retry_exhausted(self) -> bool:
        """True once the attempt counter has reached the retry limit."""
        return self.connection_attempts >= self.max_connection_attempts

    def can_attempt(self, current_time: float) -> bool:
        """Whether the UE is eligible for a connection attempt at this time."""
        return (not self.is_connected and not self.retry_exhausted
                and current_time >= self.retry_at)

    def reset_attempts(self):
        """Clear the attempt counter and backoff, re-enabling connection attempts."""
        self.connection_attempts = 0
        self.retry_at = 0.0

    def move(self, time_step: float, rng):
        """Discrete random walk: each axis steps by -1, 0 or +1 times speed*time_step."""
        step_x, step_y = rng.integers(-1, 2, size=2)
        self.current_position.x += self.speed * time_step * int(step_x)
        self.current_position.y += self.speed * time_step * int(step_y)
        self.trajectory.append(Position(self.current_position.x, self.current_position.y))

    def connect(self, gnbs: Iterable['GNodeB'], slices: SliceRegistry, rng,
                current_time: float = 0.0) -> ConnectionAttempt:
        """
        Attempt to attach to the best (gNB, slice) pair.

        Args:
            gnbs: Candidate gNBs, in enumeration order
            slices: Registry resolving the slices hosted by each gNB
            rng: numpy Generator for the channel shadowing draws
            current_time: Simulation time, used for retry backoff

        Returns:
            ConnectionAttempt describing the outcome

        Raises:
            AlreadyConnectedError: If the UE is already connected
        """
        if self.is_connected:
            raise AlreadyConnectedError(f"UE {self.ue_id} is already connected")

        self.connection_attempts += 1
        self.stats['total_attempts'] += 1
        attempt = self.connection_attempts

        candidates, best_rejected, stations_in_range = self._evaluate_potential_connections(
            gnbs, slices, rng
        )

        if not candidates:
            result = self._no_candidate(attempt, best_rejected, stations_in_range)
        else:
            best = rank_candidates(candidates)[0]
            result = self._establish_connection(best, slices, attempt, stations_in_range,
                                                current_time)

        if not self.is_connected:
            self.stats['failed_attempts'] += 1
            if self.connection_attempts < self.max_connection_attempts:
                self.retry_at = current_time + self.connection_attempts * self.backoff_unit
            else:
                logger.warning(f"UE {self.ue_id} exhausted {self.max_connection_attempts} "
                               f"connection attempts")

        return result

    def _evaluate_potential_connections(self, gnbs, slices: SliceRegistry, rng):
        """Collect viable candidates and the best rejected one for diagnostics."""
        candidates: List[ConnectionCandidate] = []
        best_rejected: Optional[ConnectionCandidate] = None
        stations_in_range = 0
        admission_threshold = self.required_bandwidth * ADMISSION_HEADROOM

        for gnb in gnbs:
            metrics = gnb.evaluate(self.current_position, rng)

            if not SliceRequirementsMapping.meets_requirements(
                    self.required_slice, metrics.sinr, metrics.rsrp):
                continue
            stations_in_range += 1

            for network_slice in gnb.hosted_slices(slices):
                if network_slice.slice_type != self.required_slice:
                    continue

                candidate = ConnectionCandidate(
                    gnb_id=gnb.gnb_id,
                    slice_id=network_slice.slice_id,
                    sinr=metrics.sinr,
                    rsrp=metrics.rsrp,
                    available_bandwidth=network_slice.check_available()
                )
                if candidate.available_bandwidth >= admission_threshold:
                    candidates.append(candidate)
                elif best_rejected is None or candidate.score > best_rejected.score:
                    best_rejected = candidate

        return candidates, best_rejected, stations_in_range

    def _no_candidate(self, attempt: int, best_rejected: Optional[ConnectionCandidate],
                      stations_in_range: int) -> ConnectionAttempt:
        if best_rejected is None:
            logger.debug(f"UE {self.ue_id} found no viable stations (attempt {attempt})")
            return ConnectionAttempt(
                ue_id=self.ue_id,
                outcome=ConnectionOutcome.NO_CANDIDATE,
                attempt=attempt,
                requested_bandwidth=self.required_bandwidth,
                slice_type=self.required_slice,
                stations_in_range=stations_in_range
            )

        logger.debug(f"UE {self.ue_id} could not connect, best rejected gNB {best_rejected.gnb_id} "
                     f"advertises {best_rejected.available_bandwidth:.2f} MHz")
        return ConnectionAttempt(
            ue_id=self.ue_id,
            outcome=ConnectionOutcome.NO_CANDIDATE,
            attempt=attempt,
            requested_bandwidth=self.required_bandwidth,
            gnb_id=best_rejected.gnb_id,
            slice_id=best_rejected.slice_id,
            slice_type=self.required_slice,
            sinr=best_rejected.sinr,
            rsrp=best_rejected.rsrp,
            available_bandwidth=best_rejected.available_bandwidth,
            stations_in_range=stations_in_range
        )

    def _establish_connection(self, candidate: ConnectionCandidate, slices: SliceRegistry,
                              attempt: int, stations_in_range: int,
                              current_time: float) -> ConnectionAttempt:
        network_slice = slices.get(candidate.slice_id)
        granted = network_slice.allocate(self.required_bandwidth)

        result = ConnectionAttempt(
            ue_id=self.ue_id,
            outcome=ConnectionOutcome.CONNECTED if granted > 0 else ConnectionOutcome.REJECTED,
            attempt=attempt,
            requested_bandwidth=self.required_bandwidth,
            gnb_id=candidate.gnb_id,
            slice_id=candidate.slice_id,
            slice_type=network_slice.slice_type,
            granted_bandwidth=granted,
            sinr=candidate.sinr,
            rsrp=candidate.rsrp,
            available_bandwidth=candidate.available_bandwidth,
            stations_in_range=stations_in_range
        )

        if granted <= 0:
            logger.debug(f"UE {self.ue_id} failed to allocate resources on "
                         f"{network_slice.name} slice {network_slice.slice_id}")
            return result

        self.connection = Connection(
            gnb_id=candidate.gnb_id,
            slice_id=candidate.slice_id,
            slice_type=network_slice.slice_type,
            allocated_bandwidth=granted,
            sinr=candidate.sinr,
            rsrp=candidate.rsrp,
            established_at=current_time
        )
        self.connection_attempts = 0
        self.retry_at = 0.0
        self.stats['connections'] += 1

        logger.debug(f"UE {self.ue_id} connected to gNB {candidate.gnb_id} on "
                     f"{network_slice.name} slice ({granted:.2f}/{self.required_bandwidth:.2f} MHz)")
        return result

    def disconnect(self, slices: SliceRegistry) -> float:
        """
        Release the connection and return its bandwidth to the slice.

        Returns:
            Released bandwidth (0 if the UE was not connected)
        """
        if self.connection is None:
            return 0.0

        connection = self.connection
        slices.get(connection.slice_id).release(connection.allocated_bandwidth)
        self.connection = None
        self.stats['disconnections'] += 1

        logger.debug(f"UE {self.ue_id} disconnected from gNB {connection.gnb_id}")
        return connection.allocated_bandwidth

    def get_trajectory(self) -> List[Position]:
        """Get the complete trajectory of the UE."""
        return self.trajectory.copy()

    def get_statistics(self) -> Dict:
        """Get UE statistics."""
        total_distance = 0.0
        for i in range(1, len(self.trajectory)):
            total_distance += self.trajectory[i].distance_to(self.trajectory[i-1])

        connection = self.connection
        stats = self.stats.copy()
        stats.update({
            'ue_id': self.ue_id,
            'current_position': (self.current_position.x, self.current_position.y),
            'speed': self.speed,
            'required_slice': self.required_slice.value,
            'required_bandwidth': self.required_bandwidth,
            'connected': connection is not None,
            'connected_gnb_id': connection.gnb_id if connection else None,
            'allocated_bandwidth': connection.allocated_bandwidth if connection else 0.0,
            'sinr': connection.sinr if connection else None,
            'connection_attempts': self.connection_attempts,
            'retry_exhausted': self.retry_exhausted,
            'total_distance_traveled': total_distance
        })
        return stats
