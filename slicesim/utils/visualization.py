"""
Visualization utilities for 5G slice association simulations.

This module provides plotting of connection and slice utilization results.
"""

import logging
import os
from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from ..simulation.metrics import SimulationResults

logger = logging.getLogger(__name__)

SLICE_COLUMNS = ['connected_eMBB', 'connected_URLLC', 'connected_mMTC']


class NetworkVisualizer:
    """Visualization for 5G slice association simulation results."""

    def __init__(self, style: str = 'seaborn-v0_8'):
        try:
            plt.style.use(style)
        except OSError:
            # Fallback to default if seaborn style not available
            plt.style.use('default')
        self.colors = sns.color_palette('Set2', 8)

    def create_comprehensive_report(self, results: SimulationResults, output_dir: str = "./results/"):
        """Create all plots for a simulation run."""
        os.makedirs(output_dir, exist_ok=True)
        self.plot_connection_rate(results, output_dir)
        self.plot_slice_distribution(results, output_dir)
        self.plot_slice_utilization(results, output_dir)
        self.plot_attempt_outcomes(results, output_dir)
        self.plot_network_topology(results, output_dir)

        logger.info(f"Visualization report created in {output_dir}")

    def plot_connection_rate(self, results: SimulationResults, output_dir: str):
        """Plot UE connection rate over time."""
        df = results.metrics_data
        if df.empty:
            return

        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(df['timestamp'], df['connection_rate'], color=self.colors[0], linewidth=2)
        ax.set_title('UE Connection Rate Over Time', fontsize=14, fontweight='bold')
        ax.set_xlabel('Time (s)')
        ax.set_ylabel('Connection Rate')
        ax.set_ylim(0, 1.05)
        ax.grid(True, alpha=0.3)

        self._save(fig, output_dir, 'connection_rate.png')

    def plot_slice_distribution(self, results: SimulationResults, output_dir: str):
        """Plot connected UEs per slice type over time."""
        df = results.metrics_data
        columns = [c for c in SLICE_COLUMNS if c in df.columns]
        if df.empty or not columns:
            return

        fig, ax = plt.subplots(figsize=(10, 6))
        ax.stackplot(df['timestamp'], *[df[c] for c in columns],
                     labels=[c.replace('connected_', '') for c in columns],
                     colors=self.colors[:len(columns)], alpha=0.8)
        ax.set_title('Connected UEs per Slice Type', fontsize=14, fontweight='bold')
        ax.set_xlabel('Time (s)')
        ax.set_ylabel('Connected UEs')
        ax.legend(loc='upper left')
        ax.grid(True, alpha=0.3)

        self._save(fig, output_dir, 'slice_distribution.png')

    def plot_slice_utilization(self, results: SimulationResults, output_dir: str):
        """Plot per-slice bandwidth utilization over time."""
        df = results.metrics_data
        if df.empty or not results.slice_statistics:
            return

        fig, ax = plt.subplots(figsize=(10, 6))
        for i, (slice_id, stats) in enumerate(results.slice_statistics.items()):
            column = f'slice_{slice_id}_remaining'
            if column not in df.columns or stats['capacity'] <= 0:
                continue
            utilization = 1.0 - df[column] / stats['capacity']
            ax.plot(df['timestamp'], utilization, linewidth=2,
                    color=self.colors[i % len(self.colors)],
                    label=f"Slice {slice_id} ({stats['slice_type']})")

        ax.set_title('Slice Bandwidth Utilization', fontsize=14, fontweight='bold')
        ax.set_xlabel('Time (s)')
        ax.set_ylabel('Utilization')
        ax.set_ylim(0, 1.05)
        ax.legend()
        ax.grid(True, alpha=0.3)

        self._save(fig, output_dir, 'slice_utilization.png')

    def plot_attempt_outcomes(self, results: SimulationResults, output_dir: str):
        """Plot connection attempt outcomes per slice type."""
        attempts = results.attempts_data
        if attempts.empty:
            return

        counts = (attempts.groupby(['slice_type', 'outcome']).size()
                  .reset_index(name='count'))

        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(data=counts, x='slice_type', y='count', hue='outcome',
                    palette='Set2', ax=ax)
        ax.set_title('Connection Attempt Outcomes', fontsize=14, fontweight='bold')
        ax.set_xlabel('Slice Type')
        ax.set_ylabel('Attempts')

        self._save(fig, output_dir, 'attempt_outcomes.png')

    def plot_network_topology(self, results: SimulationResults, output_dir: str):
        """Plot gNB positions and final UE positions."""
        fig, ax = plt.subplots(figsize=(10, 10))

        gnb_markers = self.gnb_markers(results.config)
        if gnb_markers:
            gnb_positions = np.asarray([(x, y) for _, x, y in gnb_markers], dtype=float)
            ax.scatter(gnb_positions[:, 0], gnb_positions[:, 1], c='red', s=200, marker='^',
                       label='gNBs', edgecolors='black')
            for gnb_id, x, y in gnb_markers:
                ax.annotate(f'gNB {gnb_id}', (x, y), xytext=(5, 5), textcoords='offset points')

        ue_stats = results.ue_statistics
        if ue_stats:
            frame = pd.DataFrame([
                {'x': s['current_position'][0], 'y': s['current_position'][1],
                 'slice': s['required_slice'], 'connected': s['connected']}
                for s in ue_stats.values()
            ])
            sns.scatterplot(data=frame, x='x', y='y', hue='slice', style='connected',
                            s=60, alpha=0.8, ax=ax)

        ax.set_title('Network Topology', fontsize=14, fontweight='bold')
        ax.set_xlabel('X Position (m)')
        ax.set_ylabel('Y Position (m)')
        ax.grid(True, alpha=0.3)
        ax.axis('equal')

        self._save(fig, output_dir, 'network_topology.png')

    def export_summary_report(self, results: SimulationResults, output_file: str):
        """Write a plain-text summary of the run."""
        lines: List[str] = ["5G SLICE ASSOCIATION SIMULATION SUMMARY", "=" * 50, ""]

        summary: Dict = results.summary_statistics
        for key, value in summary.items():
            if isinstance(value, float):
                lines.append(f"{key}: {value:.3f}")
            else:
                lines.append(f"{key}: {value}")

        if results.slice_statistics:
            lines += ["", "Slices:"]
            for slice_id, stats in results.slice_statistics.items():
                lines.append(f"  Slice {slice_id} ({stats['slice_type']}): "
                             f"{stats['remaining']:.2f}/{stats['capacity']:.2f} remaining, "
                             f"{stats['allocations']} allocations")

        lines += ["", f"Execution time: {results.execution_time:.2f} seconds"]

        with open(output_file, 'w') as f:
            f.write("\n".join(lines) + "\n")

    @staticmethod
    def gnb_markers(config) -> List[Tuple[int, float, float]]:
        """gNB (id, x, y) triples, using the same id defaults as the engine."""
        if config is None or not config.gnbs:
            return []
        return [(spec.get('gnb_id', i), float(spec['position'][0]), float(spec['position'][1]))
                for i, spec in enumerate(config.gnbs, start=1)]

    @staticmethod
    def _save(fig, output_dir: str, filename: str):
        fig.tight_layout()
        fig.savefig(os.path.join(output_dir, filename), dpi=300, bbox_inches='tight')
        plt.close(fig)
