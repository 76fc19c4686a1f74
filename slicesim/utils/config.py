"""
Configuration management for 5G slice association simulations.

This module provides utilities for loading and validating simulation configurations.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import jsonschema
import yaml

logger = logging.getLogger(__name__)

SLICE_TYPE_NAMES = ["eMBB", "URLLC", "mMTC"]


class ConfigManager:
    """Manages simulation configuration loading and validation."""

    _POSITION_SCHEMA = {
        "type": "array",
        "items": {"type": "number"},
        "minItems": 2,
        "maxItems": 2
    }

    # Configuration schema for validation
    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "simulation": {
                "type": "object",
                "properties": {
                    "simulation_steps": {"type": "integer", "minimum": 1},
                    "time_step": {"type": "number", "exclusiveMinimum": 0},
                    "random_seed": {"type": ["integer", "null"]},
                    "log_level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
                    "output_file": {"type": "string"},
                    "enable_visualization": {"type": "boolean"}
                },
                "required": ["simulation_steps"]
            },
            "network": {
                "type": "object",
                "properties": {
                    "gnb_height": {"type": "number", "minimum": 0},
                    "gnbs": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "properties": {
                                "gnb_id": {"type": "integer"},
                                "position": _POSITION_SCHEMA,
                                "frequency": {"type": "number", "exclusiveMinimum": 0},
                                "tx_power": {"type": "number"},
                                "height": {"type": "number", "minimum": 0}
                            },
                            "required": ["position", "frequency", "tx_power"]
                        }
                    },
                    "slices": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "properties": {
                                "slice_id": {"type": "integer"},
                                "slice_type": {"type": "string", "enum": SLICE_TYPE_NAMES},
                                "priority": {"type": "number", "minimum": 0, "maximum": 1},
                                "capacity": {"type": "number", "minimum": 0}
                            },
                            "required": ["slice_type", "capacity"]
                        }
                    }
                }
            },
            "ues": {
                "type": "object",
                "properties": {
                    "num_ues": {"type": "integer", "minimum": 1},
                    "area_size": {"type": "number", "exclusiveMinimum": 0},
                    "slice_mix": {
                        "type": "array",
                        "items": {"type": "number", "minimum": 0},
                        "minItems": 3,
                        "maxItems": 3
                    },
                    "min_bandwidth": {"type": "integer", "minimum": 0},
                    "max_bandwidth": {"type": "integer", "minimum": 0},
                    "min_speed": {"type": "integer", "minimum": 0},
                    "max_speed": {"type": "integer", "minimum": 0},
                    "ue_specs": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "ue_id": {"type": "integer"},
                                "position": _POSITION_SCHEMA,
                                "speed": {"type": "number", "minimum": 0},
                                "slice_type": {"type": "string", "enum": SLICE_TYPE_NAMES},
                                "required_bandwidth": {"type": "number", "minimum": 0}
                            },
                            "required": ["position", "speed", "slice_type", "required_bandwidth"]
                        }
                    }
                },
                "required": ["num_ues"]
            },
            "connection": {
                "type": "object",
                "properties": {
                    "drop_probability": {"type": "number", "minimum": 0, "maximum": 1},
                    "max_connection_attempts": {"type": "integer", "minimum": 1},
                    "backoff_unit": {"type": "number", "minimum": 0}
                }
            },
            "channel": {
                "type": "object",
                "properties": {
                    "shadow_std": {"type": "number", "minimum": 0},
                    "interference_dbm": {"type": "number"}
                }
            }
        },
        "required": ["simulation", "ues"]
    }

    @classmethod
    def load_config(cls, config_file: str):
        """
        Load configuration from file.

        Args:
            config_file: Path to configuration file (JSON or YAML)

        Returns:
            SimulationConfig built from the file

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file format is unsupported
            jsonschema.ValidationError: If config is invalid
        """
        config_path = Path(config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        logger.info(f"Loading configuration from {config_file}")

        with open(config_path, 'r') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                config_data = yaml.safe_load(f)
            elif config_path.suffix.lower() == '.json':
                config_data = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        try:
            cls.validate_config(config_data)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration validation error: {e.message}")
            raise

        return cls._create_simulation_config(config_data)

    @classmethod
    def validate_config(cls, config_data: Dict[str, Any]):
        """
        Validate configuration against schema.

        Raises:
            jsonschema.ValidationError: If config is invalid
            ValueError: If bandwidth or speed ranges are inverted
        """
        jsonschema.validate(config_data, cls.CONFIG_SCHEMA)

        ues_config = config_data.get('ues', {})
        for low, high in [('min_bandwidth', 'max_bandwidth'), ('min_speed', 'max_speed')]:
            if low in ues_config and high in ues_config and ues_config[low] > ues_config[high]:
                raise ValueError(f"ues.{low} must not exceed ues.{high}")

    @classmethod
    def _create_simulation_config(cls, config_data: Dict[str, Any]):
        """Create SimulationConfig from validated configuration data."""
        from ..simulation.engine import SimulationConfig  # Import here to avoid circular imports
        defaults = SimulationConfig()
        sim_config = config_data.get('simulation', {})
        network_config = config_data.get('network', {})
        ues_config = config_data.get('ues', {})
        connection_config = config_data.get('connection', {})
        channel_config = config_data.get('channel', {})

        return SimulationConfig(
            # Simulation parameters
            simulation_steps=sim_config.get('simulation_steps', defaults.simulation_steps),
            time_step=sim_config.get('time_step', defaults.time_step),
            random_seed=sim_config.get('random_seed'),
            log_level=sim_config.get('log_level', defaults.log_level),
            output_file=sim_config.get('output_file'),
            enable_visualization=sim_config.get('enable_visualization', False),

            # Network parameters
            gnbs=network_config.get('gnbs', defaults.gnbs),
            gnb_height=network_config.get('gnb_height', defaults.gnb_height),
            slices=network_config.get('slices', defaults.slices),

            # UE parameters
            num_ues=ues_config.get('num_ues', defaults.num_ues),
            area_size=ues_config.get('area_size', defaults.area_size),
            slice_mix=ues_config.get('slice_mix', defaults.slice_mix),
            min_bandwidth=ues_config.get('min_bandwidth', defaults.min_bandwidth),
            max_bandwidth=ues_config.get('max_bandwidth', defaults.max_bandwidth),
            min_speed=ues_config.get('min_speed', defaults.min_speed),
            max_speed=ues_config.get('max_speed', defaults.max_speed),
            ue_specs=ues_config.get('ue_specs'),

            # Connection parameters
            drop_probability=connection_config.get('drop_probability', defaults.drop_probability),
            max_connection_attempts=connection_config.get('max_connection_attempts',
                                                          defaults.max_connection_attempts),
            backoff_unit=connection_config.get('backoff_unit', defaults.backoff_unit),

            # Channel parameters
            shadow_std=channel_config.get('shadow_std', defaults.shadow_std),
            interference_dbm=channel_config.get('interference_dbm', defaults.interference_dbm)
        )

    @classmethod
    def create_default_config(cls, config_file: str, scenario: str = "basic"):
        """
        Create a default configuration file.

        Args:
            config_file: Output configuration file path
            scenario: Scenario type ("basic", "dense", "mmwave")
        """
        if scenario == "basic":
            config = cls._create_basic_scenario_config()
        elif scenario == "dense":
            config = cls._create_dense_scenario_config()
        elif scenario == "mmwave":
            config = cls._create_mmwave_scenario_config()
        else:
            raise ValueError(f"Unknown scenario: {scenario}")

        config_path = Path(config_file)
        with open(config_path, 'w') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                yaml.dump(config, f, default_flow_style=False, indent=2)
            else:
                json.dump(config, f, indent=2)

    @classmethod
    def _create_basic_scenario_config(cls) -> Dict[str, Any]:
        """Four gNBs on a 1 km square, mixed 600 MHz / 28 GHz, 50 UEs."""
        return {
            "simulation": {
                "simulation_steps": 10,
                "time_step": 1.0,
                "output_file": "results/basic_scenario_results.json",
                "enable_visualization": True
            },
            "network": {
                "gnb_height": 25.0,
                "gnbs": [
                    {"position": [0, 0], "frequency": 600e6, "tx_power": 40.0},
                    {"position": [1000, 1000], "frequency": 28e9, "tx_power": 30.0},
                    {"position": [0, 1000], "frequency": 600e6, "tx_power": 40.0},
                    {"position": [1000, 0], "frequency": 28e9, "tx_power": 30.0}
                ],
                "slices": [
                    {"slice_type": "eMBB", "priority": 0.7, "capacity": 100.0},
                    {"slice_type": "URLLC", "priority": 0.9, "capacity": 50.0},
                    {"slice_type": "mMTC", "priority": 0.3, "capacity": 200.0}
                ]
            },
            "ues": {
                "num_ues": 50,
                "area_size": 1000.0,
                "slice_mix": [70, 20, 10],
                "min_bandwidth": 5,
                "max_bandwidth": 24,
                "min_speed": 1,
                "max_speed": 5
            },
            "connection": {
                "drop_probability": 0.1,
                "max_connection_attempts": 5,
                "backoff_unit": 0.1
            },
            "channel": {
                "shadow_std": 8.0,
                "interference_dbm": -90.0
            }
        }

    @classmethod
    def _create_dense_scenario_config(cls) -> Dict[str, Any]:
        """Slice contention: 200 UEs sharing the basic topology for 30 steps."""
        config = cls._create_basic_scenario_config()
        config["simulation"].update({
            "simulation_steps": 30,
            "output_file": "results/dense_scenario_results.json"
        })
        config["ues"].update({"num_ues": 200})
        return config

    @classmethod
    def _create_mmwave_scenario_config(cls) -> Dict[str, Any]:
        """Nine 28 GHz small cells on a 500 m grid, URLLC-heavy traffic."""
        config = cls._create_basic_scenario_config()
        config["simulation"].update({
            "simulation_steps": 20,
            "output_file": "results/mmwave_scenario_results.json"
        })
        config["network"].update({
            "gnb_height": 10.0,
            "gnbs": [
                {"position": [x, y], "frequency": 28e9, "tx_power": 30.0}
                for y in (0, 500, 1000) for x in (0, 500, 1000)
            ]
        })
        config["ues"].update({"num_ues": 80, "slice_mix": [40, 50, 10]})
        return config

    @classmethod
    def get_available_scenarios(cls) -> List[str]:
        """Get list of available predefined scenarios."""
        return ["basic", "dense", "mmwave"]
