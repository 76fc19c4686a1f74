"""
Metrics collection and analysis for 5G slice association simulations.

This module turns per-tick reports into time series, per-slice and per-UE
statistics, and exports them to JSON or CSV.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class SimulationResults:
    """Container for simulation results."""
    metrics_data: pd.DataFrame
    attempts_data: pd.DataFrame
    summary_statistics: Dict[str, Any]
    slice_statistics: Dict[int, Dict[str, Any]]
    ue_statistics: Dict[int, Dict[str, Any]]
    reports: List[Any] = field(default_factory=list)
    execution_time: float = 0.0
    config: Optional[Any] = None


class MetricsCollector:
    """Collects and analyzes simulation metrics."""

    def __init__(self):
        self.measurements: List[Dict] = []
        self.attempt_records: List[Dict] = []
        self.time_series_data = {
            'connection_rate': [],
            'connected_ues': [],
            'slice_distribution': [],
            'slice_remaining': []
        }

    def add_measurement(self, report):
        """Add a TickReport measurement point."""
        distribution = {slice_type.value: count
                        for slice_type, count in report.slice_distribution.items()}
        outcomes = Counter(attempt.outcome.value for attempt in report.attempts)

        measurement = {
            'step': report.step,
            'timestamp': report.time,
            'connected_ues': report.connected,
            'total_ues': report.total,
            'connection_rate': report.connection_rate,
            'attempts': len(report.attempts),
            'connected_attempts': outcomes.get('connected', 0),
            'rejected_attempts': outcomes.get('rejected', 0),
            'no_candidate_attempts': outcomes.get('no_candidate', 0),
            'dropped': len(report.dropped)
        }
        for slice_name, count in distribution.items():
            measurement[f'connected_{slice_name}'] = count
        for slice_id, remaining in report.slice_remaining.items():
            measurement[f'slice_{slice_id}_remaining'] = remaining
        self.measurements.append(measurement)

        for attempt in report.attempts:
            self.attempt_records.append({
                'step': report.step,
                'timestamp': report.time,
                'ue_id': attempt.ue_id,
                'outcome': attempt.outcome.value,
                'attempt': attempt.attempt,
                'gnb_id': attempt.gnb_id,
                'slice_id': attempt.slice_id,
                'slice_type': attempt.slice_type.value if attempt.slice_type else None,
                'requested_bandwidth': attempt.requested_bandwidth,
                'granted_bandwidth': attempt.granted_bandwidth,
                'sinr': attempt.sinr,
                'rsrp': attempt.rsrp,
                'stations_in_range': attempt.stations_in_range
            })

        timestamp = report.time
        self.time_series_data['connection_rate'].append({
            'timestamp': timestamp,
            'value': report.connection_rate
        })
        self.time_series_data['connected_ues'].append({
            'timestamp': timestamp,
            'value': report.connected
        })
        self.time_series_data['slice_distribution'].append({
            'timestamp': timestamp,
            'value': distribution
        })
        self.time_series_data['slice_remaining'].append({
            'timestamp': timestamp,
            'value': dict(report.slice_remaining)
        })

    def generate_results(self, slices: Optional[List] = None,
                         ues: Optional[List] = None) -> SimulationResults:
        """Generate simulation results."""
        slice_stats = self._calculate_slice_statistics(slices or [])
        ue_stats = {ue.ue_id: ue.get_statistics() for ue in (ues or [])}

        if not self.measurements:
            return SimulationResults(
                metrics_data=pd.DataFrame(),
                attempts_data=pd.DataFrame(),
                summary_statistics={},
                slice_statistics=slice_stats,
                ue_statistics=ue_stats
            )

        df = pd.DataFrame(self.measurements)
        attempts_df = pd.DataFrame(self.attempt_records)

        return SimulationResults(
            metrics_data=df,
            attempts_data=attempts_df,
            summary_statistics=self._calculate_summary_statistics(df, attempts_df),
            slice_statistics=slice_stats,
            ue_statistics=ue_stats
        )

    def _calculate_summary_statistics(self, df: pd.DataFrame,
                                      attempts_df: pd.DataFrame) -> Dict[str, Any]:
        """Calculate summary statistics."""
        total_attempts = int(df['attempts'].sum())
        successful = int(df['connected_attempts'].sum())

        stats = {
            'total_steps': len(df),
            'total_ues': int(df['total_ues'].iloc[-1]),
            'final_connected_ues': int(df['connected_ues'].iloc[-1]),
            'average_connection_rate': float(df['connection_rate'].mean()),
            'min_connection_rate': float(df['connection_rate'].min()),
            'peak_connection_rate': float(df['connection_rate'].max()),
            'total_attempts': total_attempts,
            'successful_attempts': successful,
            'rejected_attempts': int(df['rejected_attempts'].sum()),
            'no_candidate_attempts': int(df['no_candidate_attempts'].sum()),
            'attempt_success_rate': successful / total_attempts if total_attempts > 0 else 0.0,
            'total_drops': int(df['dropped'].sum())
        }

        if not attempts_df.empty:
            connected = attempts_df[attempts_df['outcome'] == 'connected']
            if not connected.empty:
                stats['average_granted_bandwidth'] = float(connected['granted_bandwidth'].mean())
                stats['average_connection_sinr'] = float(connected['sinr'].mean())
                stats['average_connection_rsrp'] = float(connected['rsrp'].mean())

        return stats

    def _calculate_slice_statistics(self, slices: List) -> Dict[int, Dict[str, Any]]:
        """Calculate per-slice statistics over the recorded ticks."""
        slice_stats = {}
        for network_slice in slices:
            stats = network_slice.get_statistics()
            remaining = [m.get(f'slice_{network_slice.slice_id}_remaining')
                         for m in self.measurements]
            remaining = [r for r in remaining if r is not None]
            if remaining and network_slice.capacity > 0:
                utilization = 1.0 - np.asarray(remaining) / network_slice.capacity
                stats['average_utilization'] = float(np.mean(utilization))
                stats['peak_utilization'] = float(np.max(utilization))
            slice_stats[network_slice.slice_id] = stats
        return slice_stats

    def export_results(self, results: SimulationResults, output_file: str):
        """Export results to file."""
        if output_file.endswith('.json'):
            self._export_json(results, output_file)
        elif output_file.endswith('.csv'):
            self._export_csv(results, output_file)
        else:
            raise ValueError(f"Unsupported file format: {output_file}")
        logger.info(f"Results exported to {output_file}")

    def _export_json(self, results: SimulationResults, filename: str):
        """Export results to JSON."""
        export_data = {
            'summary_statistics': results.summary_statistics,
            'slice_statistics': results.slice_statistics,
            'ue_statistics': results.ue_statistics,
            'execution_time': results.execution_time
        }

        with open(filename, 'w') as f:
            json.dump(export_data, f, indent=2, default=str)

    def _export_csv(self, results: SimulationResults, filename: str):
        """Export per-tick results to CSV."""
        results.metrics_data.to_csv(filename, index=False)
