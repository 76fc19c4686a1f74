#!/usr/bin/env python3
"""
Main simulation runner for the 5G Network Slice Association Simulator.

This script runs slice association simulations with configurable scenarios,
prints per-tick connection status and generates results and visualizations.

Usage:
    python run_simulation.py --config scenarios/basic_scenario.json
    python run_simulation.py --scenario dense --output results/dense.json
    python run_simulation.py --help
"""

import argparse
import logging
import os
import sys
import tempfile
import traceback
from pathlib import Path

# Allow running from a source checkout without installing the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from slicesim.mobility.user_equipment import ConnectionOutcome
from slicesim.simulation.engine import SimulationEngine
from slicesim.utils.config import ConfigManager
from slicesim.utils.visualization import NetworkVisualizer


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='5G Network Slice Association Simulator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config scenarios/basic_scenario.json
  %(prog)s --scenario dense --steps 50 --seed 7
  %(prog)s --create-scenario mmwave --config-output scenarios/mmwave.yaml
        """
    )

    # Main execution modes
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--config', '-c', type=str,
                       help='Configuration file path (JSON or YAML)')
    group.add_argument('--scenario', '-s', type=str,
                       choices=ConfigManager.get_available_scenarios(),
                       help='Use predefined scenario')
    group.add_argument('--create-scenario', type=str,
                       choices=ConfigManager.get_available_scenarios(),
                       help='Create a new scenario configuration file')

    # Optional parameters
    parser.add_argument('--steps', type=int,
                        help='Number of simulation steps (overrides config)')
    parser.add_argument('--seed', type=int,
                        help='Random seed (overrides config)')
    parser.add_argument('--output', '-o', type=str,
                        help='Output file for results (overrides config)')
    parser.add_argument('--results-dir', type=str, default='results',
                        help='Directory for results and visualizations')
    parser.add_argument('--config-output', type=str,
                        help='Output path for created scenario (used with --create-scenario)')
    parser.add_argument('--no-visualization', action='store_true',
                        help='Disable visualization generation')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Only print the final summary')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    return parser.parse_args()


def setup_logging(level: str, verbose: bool):
    """Configure root logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def format_attempt(attempt) -> str:
    """Render a connection attempt as a console line."""
    if attempt.outcome == ConnectionOutcome.CONNECTED:
        return (f"UE {attempt.ue_id} connected to gNB {attempt.gnb_id} on "
                f"{attempt.slice_type.value} slice\n"
                f"  - Allocated BW: {attempt.granted_bandwidth:.2f}/{attempt.requested_bandwidth:.2f} MHz\n"
                f"  - SINR: {attempt.sinr:.2f} dB, RSRP: {attempt.rsrp:.2f} dBm")
    if attempt.outcome == ConnectionOutcome.REJECTED:
        return f"UE {attempt.ue_id} failed to allocate resources on {attempt.slice_type.value} slice"
    if attempt.gnb_id is not None:
        return (f"UE {attempt.ue_id} could not connect (Best Candidate: gNB {attempt.gnb_id}, "
                f"SINR {attempt.sinr:.2f} dB, RSRP {attempt.rsrp:.2f} dBm, "
                f"BW {attempt.available_bandwidth:.2f} MHz)")
    return f"UE {attempt.ue_id} found no viable stations (Attempt {attempt.attempt})"


def print_tick_report(report):
    """Print the status block for one simulation step."""
    print(f"\n=== Simulation Step {report.step} ===")
    for ue_id in report.dropped:
        print(f"UE {ue_id} disconnected")
    for attempt in report.attempts:
        print(format_attempt(attempt))

    print(f"Network Status: {report.connected}/{report.total} UEs connected "
          f"({100.0 * report.connection_rate:.1f}%)")
    print("Slice Distribution:")
    for slice_type, count in report.slice_distribution.items():
        if count:
            print(f"  {slice_type.value}: {count} UEs")


def run_simulation_with_config(config, args) -> bool:
    """Run simulation with given configuration."""
    if args.steps is not None:
        config.simulation_steps = args.steps
    if args.seed is not None:
        config.random_seed = args.seed
    if args.output:
        config.output_file = args.output
    if args.no_visualization:
        config.enable_visualization = False

    setup_logging(config.log_level, args.verbose)

    print("\n" + "="*60)
    print("5G NETWORK SLICE ASSOCIATION SIMULATOR")
    print("="*60)

    if args.verbose:
        print("Configuration:")
        print(f"  Steps: {config.simulation_steps} x {config.time_step}s")
        print(f"  gNBs: {len(config.gnbs)}")
        print(f"  Slices: {', '.join(s['slice_type'] for s in config.slices)}")
        print(f"  UEs: {len(config.ue_specs) if config.ue_specs else config.num_ues}")
        print(f"  Seed: {config.random_seed}")
        print()

    try:
        engine = SimulationEngine(config)
        engine.initialize()
        print(f"Created {len(engine.gnbs)} base stations")
        print(f"Created {len(engine.slices)} network slices")
        print(f"Created {len(engine.ues)} user equipment instances")

        results = engine.run()

        if not args.quiet:
            for report in results.reports:
                print_tick_report(report)

        print("\n" + "-"*50)
        print("SIMULATION COMPLETED SUCCESSFULLY")
        print("-"*50)

        stats = results.summary_statistics
        if stats:
            print(f"Average Connection Rate: {stats['average_connection_rate']:.3f}")
            print(f"Connection Attempts: {stats['total_attempts']} "
                  f"({stats['attempt_success_rate']:.3f} success rate)")
            print(f"Random Drops: {stats['total_drops']}")
        print(f"Execution time: {results.execution_time:.2f} seconds")

        if config.output_file:
            output_path = os.path.join(args.results_dir, os.path.basename(config.output_file))
            engine.metrics_collector.export_results(results, output_path)
            print(f"Results saved to: {output_path}")

        if config.enable_visualization:
            print("\nGenerating visualizations...")
            try:
                visualizer = NetworkVisualizer()
                visualizer.create_comprehensive_report(results, args.results_dir)
                summary_file = os.path.join(args.results_dir, "simulation_summary.txt")
                visualizer.export_summary_report(results, summary_file)
                print(f"Visualizations created in: {args.results_dir}")
            except Exception as e:
                print(f"Warning: Error generating visualizations: {e}")
                if args.verbose:
                    traceback.print_exc()

        print("\n" + "="*60)
        return True

    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        return False
    except Exception as e:
        print(f"Error running simulation: {e}")
        if args.verbose:
            traceback.print_exc()
        return False


def run_simulation_from_config(config_file: str, args) -> bool:
    """Run simulation from configuration file."""
    print(f"Loading configuration from: {config_file}")

    try:
        config = ConfigManager.load_config(config_file)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        return False

    return run_simulation_with_config(config, args)


def run_simulation_from_scenario(scenario: str, args) -> bool:
    """Run simulation from predefined scenario."""
    print(f"Using predefined scenario: {scenario}")

    with tempfile.TemporaryDirectory() as tmp_dir:
        temp_config_file = os.path.join(tmp_dir, f"{scenario}_scenario.json")
        ConfigManager.create_default_config(temp_config_file, scenario)
        config = ConfigManager.load_config(temp_config_file)

    return run_simulation_with_config(config, args)


def create_scenario_config(scenario: str, args) -> bool:
    """Create a new scenario configuration file."""
    output_file = args.config_output or f"scenarios/{scenario}_scenario.json"
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)

    print(f"Creating {scenario} scenario configuration...")

    try:
        ConfigManager.create_default_config(output_file, scenario)
        print(f"Configuration created: {output_file}")
        print("You can now modify this file and run it with:")
        print(f"  python run_simulation.py --config {output_file}")
        return True
    except Exception as e:
        print(f"Error creating configuration: {e}")
        return False


def main():
    """Main entry point."""
    args = parse_arguments()

    Path(args.results_dir).mkdir(parents=True, exist_ok=True)

    if args.create_scenario:
        success = create_scenario_config(args.create_scenario, args)
    elif args.config:
        success = run_simulation_from_config(args.config, args)
    else:
        success = run_simulation_from_scenario(args.scenario, args)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
