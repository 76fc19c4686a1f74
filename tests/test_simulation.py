"""
Tests for simulation functionality.
"""

import json
import unittest
import sys
import os
import tempfile

import jsonschema
import pandas as pd

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from slicesim.simulation.engine import SimulationEngine, SimulationConfig, TickReport
from slicesim.simulation.metrics import MetricsCollector, SimulationResults
from slicesim.mobility.user_equipment import ConnectionOutcome
from slicesim.network.slice import SliceType
from slicesim.utils.config import ConfigManager
from slicesim.utils.visualization import NetworkVisualizer


def single_gnb_config(**overrides):
    """One co-located gNB and one stationary eMBB UE."""
    params = dict(
        simulation_steps=3,
        random_seed=11,
        gnbs=[{"position": [0, 0], "frequency": 600e6, "tx_power": 40.0}],
        ue_specs=[{"position": [0, 0], "speed": 0, "slice_type": "eMBB",
                   "required_bandwidth": 10}],
        drop_probability=0.0
    )
    params.update(overrides)
    return SimulationConfig(**params)


class TestSimulationConfig(unittest.TestCase):
    """Test SimulationConfig functionality."""

    def test_default_config(self):
        """Test default configuration values."""
        config = SimulationConfig()
        self.assertEqual(config.simulation_steps, 10)
        self.assertEqual(config.time_step, 1.0)
        self.assertEqual(config.num_ues, 50)
        self.assertEqual(len(config.gnbs), 4)
        self.assertEqual([s['slice_type'] for s in config.slices], ['eMBB', 'URLLC', 'mMTC'])
        self.assertEqual(config.drop_probability, 0.1)
        self.assertEqual(config.max_connection_attempts, 5)


class TestSimulationEngine(unittest.TestCase):
    """Test SimulationEngine functionality."""

    def test_engine_initialization(self):
        """Test topology and UE population construction."""
        config = SimulationConfig(num_ues=20, random_seed=1)
        engine = SimulationEngine(config)
        engine.initialize()

        self.assertEqual(sorted(engine.gnbs), [1, 2, 3, 4])
        self.assertEqual(engine.slices.ids(), [1, 2, 3])
        self.assertEqual(len(engine.ues), 20)
        self.assertIsNotNone(engine.channel_model)
        self.assertIsNotNone(engine.metrics_collector)

        for gnb in engine.gnbs.values():
            self.assertEqual(gnb.slice_ids, (1, 2, 3))

        for ue in engine.ues.values():
            self.assertTrue(5 <= ue.required_bandwidth <= 24)
            self.assertTrue(1 <= ue.speed <= 5)
            self.assertTrue(0 <= ue.current_position.x <= 1000)
            self.assertTrue(0 <= ue.current_position.y <= 1000)
            self.assertIn(ue.required_slice, list(SliceType))

    def test_slice_priority_defaults_by_type(self):
        """Test that slices without an explicit priority use the slice-type default."""
        config = single_gnb_config(slices=[
            {"slice_type": "URLLC", "capacity": 50.0},
            {"slice_type": "mMTC", "priority": 0.5, "capacity": 200.0}
        ])
        engine = SimulationEngine(config)
        engine.initialize()

        self.assertEqual(engine.slices.get(1).priority, 0.9)
        self.assertEqual(engine.slices.get(2).priority, 0.5)

    def test_short_simulation_run(self):
        """Test running a short simulation."""
        engine = SimulationEngine(SimulationConfig(num_ues=10, random_seed=5))
        results = engine.run(5)

        self.assertIsInstance(results, SimulationResults)
        self.assertEqual(len(results.reports), 5)
        self.assertEqual([r.step for r in results.reports], [1, 2, 3, 4, 5])
        self.assertEqual([r.time for r in results.reports], [0.0, 1.0, 2.0, 3.0, 4.0])
        self.assertEqual(engine.current_time, 5.0)
        self.assertEqual(len(results.metrics_data), 5)
        self.assertGreaterEqual(results.execution_time, 0.0)

    def test_tick_report_consistency(self):
        """Test aggregate counts and slice bookkeeping after every tick."""
        engine = SimulationEngine(SimulationConfig(num_ues=50, random_seed=7))
        results = engine.run(10)

        for report in results.reports:
            self.assertIsInstance(report, TickReport)
            self.assertEqual(report.total, 50)
            self.assertEqual(report.connected, sum(report.slice_distribution.values()))
            self.assertTrue(0.0 <= report.connection_rate <= 1.0)
            for remaining in report.slice_remaining.values():
                self.assertGreaterEqual(remaining, 0.0)

        for network_slice in engine.slices:
            allocated = sum(ue.connection.allocated_bandwidth for ue in engine.ues.values()
                            if ue.is_connected and ue.connection.slice_id == network_slice.slice_id)
            self.assertAlmostEqual(network_slice.capacity - network_slice.remaining,
                                   allocated, places=6)

    def test_connected_ue_matches_its_slice(self):
        engine = SimulationEngine(SimulationConfig(num_ues=30, random_seed=3))
        engine.run(5)

        for ue in engine.ues.values():
            if ue.is_connected:
                self.assertEqual(ue.connection.slice_type, ue.required_slice)
                self.assertIn(ue.connection.gnb_id, engine.gnbs)

    def test_reproducible_with_seed(self):
        """Test that identical seeds give identical runs."""
        runs = []
        for _ in range(2):
            engine = SimulationEngine(SimulationConfig(num_ues=25, random_seed=123))
            results = engine.run(8)
            runs.append((
                [r.connected for r in results.reports],
                [(ue.current_position.x, ue.current_position.y) for ue in engine.ues.values()]
            ))

        self.assertEqual(runs[0], runs[1])

    def test_random_drop_and_reconnect(self):
        """Test that a dropped UE is released and re-attaches in the same tick."""
        engine = SimulationEngine(single_gnb_config())
        first = engine.tick()
        self.assertEqual(first.connected, 1)
        self.assertEqual(first.attempts[0].outcome, ConnectionOutcome.CONNECTED)

        engine.config.drop_probability = 1.0
        second = engine.tick()
        self.assertEqual(second.dropped, [1])
        self.assertEqual(len(second.attempts), 1)
        self.assertEqual(second.connected, 1)
        self.assertAlmostEqual(engine.slices.get(1).remaining, 90.0)

    def test_connected_ue_skips_attempt(self):
        engine = SimulationEngine(single_gnb_config())
        engine.tick()
        report = engine.tick()

        self.assertEqual(report.attempts, [])
        self.assertEqual(report.connected, 1)

    def test_retry_exhaustion_and_reset(self):
        """Test that an exhausted UE stays idle until its attempts are reset."""
        config = single_gnb_config(
            gnbs=[{"position": [500, 0], "frequency": 28e9, "tx_power": -200.0}],
            max_connection_attempts=2
        )
        engine = SimulationEngine(config)
        results = engine.run(3)

        self.assertEqual([len(r.attempts) for r in results.reports], [1, 1, 0])
        self.assertTrue(engine.ues[1].retry_exhausted)

        engine.reset_ue(1)
        results = engine.run(1)
        self.assertEqual(len(results.reports[0].attempts), 1)
        self.assertEqual(results.reports[0].attempts[0].attempt, 1)

    def test_successive_runs_report_own_ticks(self):
        """Test that a second run continues the clock but reports only its own ticks."""
        engine = SimulationEngine(single_gnb_config())
        engine.run(3)
        results = engine.run(2)

        self.assertEqual([r.step for r in results.reports], [4, 5])
        self.assertEqual([r.time for r in results.reports], [3.0, 4.0])
        self.assertEqual(len(results.metrics_data), 2)
        self.assertEqual(results.summary_statistics['total_steps'], 2)
        self.assertEqual(list(results.metrics_data['step']), [4, 5])

    def test_reinitialize_restarts_simulation(self):
        """Test that rebuilding the topology restarts the clock, steps and metrics."""
        engine = SimulationEngine(single_gnb_config())
        engine.run(3)

        engine.config.slices = [{"slice_id": 9, "slice_type": "eMBB", "capacity": 100.0}]
        engine.initialize()
        self.assertEqual(engine.current_time, 0.0)
        self.assertEqual(engine.current_step, 0)

        results = engine.run(1)
        self.assertEqual(results.reports[0].step, 1)
        self.assertEqual(results.reports[0].time, 0.0)
        self.assertEqual(results.summary_statistics['total_steps'], 1)
        self.assertEqual(list(results.slice_statistics), [9])
        self.assertNotIn('slice_1_remaining', results.metrics_data.columns)

    def test_duplicate_gnb_id(self):
        config = single_gnb_config(gnbs=[
            {"gnb_id": 1, "position": [0, 0], "frequency": 600e6, "tx_power": 40.0},
            {"gnb_id": 1, "position": [500, 0], "frequency": 28e9, "tx_power": 30.0}
        ])
        with self.assertRaises(ValueError):
            SimulationEngine(config).initialize()

    def test_duplicate_ue_id(self):
        ue = {"ue_id": 3, "position": [0, 0], "speed": 1, "slice_type": "eMBB",
              "required_bandwidth": 10}
        config = single_gnb_config(ue_specs=[ue, dict(ue, position=[10, 10])])
        with self.assertRaises(ValueError):
            SimulationEngine(config).initialize()

    def test_current_state(self):
        engine = SimulationEngine(single_gnb_config())
        engine.run(1)
        state = engine.get_current_state()

        self.assertEqual(state['current_step'], 1)
        self.assertTrue(state['ues'][1]['connected'])
        self.assertEqual(state['slices'][1]['allocations'], 1)


class TestMetricsCollector(unittest.TestCase):
    """Test MetricsCollector functionality."""

    def test_empty_results(self):
        results = MetricsCollector().generate_results()

        self.assertIsInstance(results.metrics_data, pd.DataFrame)
        self.assertTrue(results.metrics_data.empty)
        self.assertEqual(results.summary_statistics, {})

    def test_summary_statistics(self):
        """Test attempt and connection counters in the summary."""
        engine = SimulationEngine(single_gnb_config())
        results = engine.run(3)
        summary = results.summary_statistics

        self.assertEqual(summary['total_steps'], 3)
        self.assertEqual(summary['total_attempts'], 1)
        self.assertEqual(summary['successful_attempts'], 1)
        self.assertEqual(summary['attempt_success_rate'], 1.0)
        self.assertEqual(summary['average_connection_rate'], 1.0)
        self.assertAlmostEqual(summary['average_granted_bandwidth'], 10.0)
        self.assertIn('connected_eMBB', results.metrics_data.columns)
        self.assertIn('slice_1_remaining', results.metrics_data.columns)
        self.assertAlmostEqual(results.slice_statistics[1]['average_utilization'], 0.1)

    def test_export_results(self):
        """Test JSON and CSV export."""
        engine = SimulationEngine(single_gnb_config())
        results = engine.run(2)

        with tempfile.TemporaryDirectory() as tmp_dir:
            json_file = os.path.join(tmp_dir, 'results.json')
            engine.metrics_collector.export_results(results, json_file)
            with open(json_file) as f:
                exported = json.load(f)
            self.assertEqual(exported['summary_statistics']['total_steps'], 2)
            self.assertIn('1', exported['slice_statistics'])

            csv_file = os.path.join(tmp_dir, 'results.csv')
            engine.metrics_collector.export_results(results, csv_file)
            self.assertEqual(len(pd.read_csv(csv_file)), 2)

            with self.assertRaises(ValueError):
                engine.metrics_collector.export_results(results, os.path.join(tmp_dir, 'results.txt'))


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager functionality."""

    def test_default_json_config(self):
        """Test creating and loading the basic scenario."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = os.path.join(tmp_dir, 'basic.json')
            ConfigManager.create_default_config(config_file, 'basic')
            config = ConfigManager.load_config(config_file)

        self.assertIsInstance(config, SimulationConfig)
        self.assertEqual(config.simulation_steps, 10)
        self.assertEqual(config.num_ues, 50)
        self.assertEqual(len(config.gnbs), 4)
        self.assertEqual(config.slice_mix, [70, 20, 10])

    def test_yaml_config(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = os.path.join(tmp_dir, 'mmwave.yaml')
            ConfigManager.create_default_config(config_file, 'mmwave')
            config = ConfigManager.load_config(config_file)

        self.assertEqual(len(config.gnbs), 9)
        self.assertEqual(config.gnb_height, 10.0)
        self.assertEqual(config.slice_mix, [40, 50, 10])

    def test_loaded_config_runs(self):
        """Test that a file-based configuration with explicit UEs drives the engine."""
        config_data = {
            "simulation": {"simulation_steps": 2, "random_seed": 4},
            "network": {
                "gnbs": [{"position": [0, 0], "frequency": 600e6, "tx_power": 40.0}]
            },
            "ues": {
                "num_ues": 1,
                "ue_specs": [{"position": [0, 0], "speed": 0, "slice_type": "URLLC",
                              "required_bandwidth": 10}]
            },
            "connection": {"drop_probability": 0.0}
        }
        with tempfile.TemporaryDirectory() as tmp_dir:
            config_file = os.path.join(tmp_dir, 'custom.json')
            with open(config_file, 'w') as f:
                json.dump(config_data, f)
            config = ConfigManager.load_config(config_file)

        results = SimulationEngine(config).run()
        self.assertEqual(len(results.reports), 2)
        self.assertEqual(results.reports[-1].slice_distribution[SliceType.URLLC], 1)

    def test_invalid_config(self):
        with self.assertRaises(jsonschema.ValidationError):
            ConfigManager.validate_config({"simulation": {}, "ues": {"num_ues": 5}})

        with self.assertRaises(jsonschema.ValidationError):
            ConfigManager.validate_config({
                "simulation": {"simulation_steps": 5},
                "ues": {"num_ues": 5},
                "network": {"slices": [{"slice_type": "V2X", "priority": 0.5, "capacity": 10}]}
            })

    def test_inverted_ranges(self):
        with self.assertRaises(ValueError):
            ConfigManager.validate_config({
                "simulation": {"simulation_steps": 5},
                "ues": {"num_ues": 5, "min_bandwidth": 30, "max_bandwidth": 10}
            })

    def test_unknown_scenario(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            with self.assertRaises(ValueError):
                ConfigManager.create_default_config(os.path.join(tmp_dir, 'x.json'), 'rural')

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ConfigManager.load_config('/nonexistent/config.json')

    def test_available_scenarios(self):
        self.assertEqual(ConfigManager.get_available_scenarios(), ['basic', 'dense', 'mmwave'])


class TestNetworkVisualizer(unittest.TestCase):
    """Test NetworkVisualizer functionality."""

    def setUp(self):
        self.config = single_gnb_config(gnbs=[
            {"gnb_id": 7, "position": [0, 0], "frequency": 600e6, "tx_power": 40.0},
            {"position": [500, 250], "frequency": 28e9, "tx_power": 30.0}
        ])

    def test_gnb_markers_use_configured_ids(self):
        """Test that topology labels match the ids the engine assigns."""
        engine = SimulationEngine(self.config)
        engine.initialize()

        markers = NetworkVisualizer.gnb_markers(self.config)

        self.assertEqual(markers, [(7, 0.0, 0.0), (2, 500.0, 250.0)])
        self.assertEqual([gnb_id for gnb_id, _, _ in markers], list(engine.gnbs))
        self.assertEqual(NetworkVisualizer.gnb_markers(None), [])

    def test_topology_plot(self):
        results = SimulationEngine(self.config).run(2)

        with tempfile.TemporaryDirectory() as tmp_dir:
            NetworkVisualizer().plot_network_topology(results, tmp_dir)
            self.assertTrue(os.path.exists(os.path.join(tmp_dir, 'network_topology.png')))


if __name__ == '__main__':
    unittest.main()
