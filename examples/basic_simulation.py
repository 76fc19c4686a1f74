#!/usr/bin/env python3
"""
Basic 5G Slice Association Example

This script demonstrates the basic usage of the simulator: a seeded run of
the default four-gNB topology with a reduced UE population.
"""

import sys
import os
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from slicesim.simulation.engine import SimulationEngine, SimulationConfig
from slicesim.qos.slice_requirements import SliceRequirementsMapping


def main():
    """Run basic simulation example"""

    # Setup logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    logger.info("Starting basic 5G slice association example")

    config = SimulationConfig(
        simulation_steps=20,
        random_seed=42,
        num_ues=20,
        drop_probability=0.05
    )

    logger.info("Slice admission thresholds:")
    for slice_type in SliceRequirementsMapping.get_supported_types():
        req = SliceRequirementsMapping.get_requirements(slice_type)
        logger.info(f"  {slice_type.value}: SINR >= {req.min_sinr} dB, "
                    f"RSRP >= {req.min_rsrp} dBm")

    engine = SimulationEngine(config)
    results = engine.run()

    logger.info("Simulation Results:")
    for report in results.reports:
        per_slice = ", ".join(f"{t.value}={n}" for t, n in report.slice_distribution.items())
        logger.info(f"  Step {report.step}: {report.connected}/{report.total} connected ({per_slice})")

    stats = results.summary_statistics
    logger.info(f"  Average connection rate: {stats['average_connection_rate'] * 100:.1f}%")
    logger.info(f"  Attempt success rate: {stats['attempt_success_rate'] * 100:.1f}%")

    os.makedirs("examples/results", exist_ok=True)
    engine.metrics_collector.export_results(results, "examples/results/basic_simulation_results.json")
    engine.metrics_collector.export_results(results, "examples/results/basic_simulation_results.csv")

    logger.info("Results saved to examples/results/")


if __name__ == "__main__":
    main()
