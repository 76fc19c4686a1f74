"""
Mobility module for 5G slice association simulations.

This module implements user equipment mobility and the connection
state machine.
"""

from .user_equipment import (UserEquipment, Position, Connection, ConnectionAttempt,
                             ConnectionCandidate, ConnectionOutcome, AlreadyConnectedError,
                             rank_candidates)

__all__ = ['UserEquipment', 'Position', 'Connection', 'ConnectionAttempt',
           'ConnectionCandidate', 'ConnectionOutcome', 'AlreadyConnectedError',
           'rank_candidates']
