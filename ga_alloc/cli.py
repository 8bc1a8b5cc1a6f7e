"""
CLI module for the allocation GA.

Handles run configuration loading, validation, and command dispatching.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from .data_models import GAConfig
from .io_utils import generate_random_instance, format_instance, load_instance, save_instance
from .orchestration import StopCriteria, run_solver

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "ga_alloc_config.yaml"

GA_FIELDS = ('population_size', 'elite_ratio', 'random_retention_ratio', 'crossover_budget_ratio')
STOP_FIELDS = ('max_generations', 'target_fitness', 'time_budget_seconds')


class ConfigValidationError(Exception):
    """Raised when run configuration is invalid."""
    pass


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration must be a mapping")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Every section is optional; present sections must be dictionaries with
    known keys of the right type.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    for section in ('input', 'output', 'ga', 'stop'):
        if section in config and not isinstance(config[section], dict):
            raise ConfigValidationError(f"'{section}' must be a dictionary")

    ga = config.get('ga', {})
    for key in ga:
        if key not in GA_FIELDS:
            raise ConfigValidationError(f"Unknown field: 'ga.{key}'")
    if 'population_size' in ga:
        size = ga['population_size']
        if not _is_integer(size) or size <= 0:
            raise ConfigValidationError(
                f"'ga.population_size' must be a positive integer, got: {size}"
            )
    for key in GA_FIELDS[1:]:
        if key in ga and not _is_number(ga[key]):
            raise ConfigValidationError(f"'ga.{key}' must be a number, got: {ga[key]}")

    stop = config.get('stop', {})
    for key in stop:
        if key not in STOP_FIELDS:
            raise ConfigValidationError(f"Unknown field: 'stop.{key}'")
    max_generations = stop.get('max_generations')
    if max_generations is not None and (not _is_integer(max_generations) or max_generations <= 0):
        raise ConfigValidationError(
            f"'stop.max_generations' must be a positive integer, got: {max_generations}"
        )
    target = stop.get('target_fitness')
    if target is not None and not _is_integer(target):
        raise ConfigValidationError(f"'stop.target_fitness' must be an integer, got: {target}")
    budget = stop.get('time_budget_seconds')
    if budget is not None and (not _is_number(budget) or budget <= 0):
        raise ConfigValidationError(
            f"'stop.time_budget_seconds' must be a positive number, got: {budget}"
        )

    seed = config.get('random_seed')
    if seed is not None and (not _is_integer(seed) or seed < 0):
        raise ConfigValidationError(f"'random_seed' must be a non-negative integer, got: {seed}")


def build_ga_config(config: Dict[str, Any]) -> GAConfig:
    """
    Create a GAConfig from the 'ga' section and 'random_seed'.

    Raises:
        ConfigValidationError: If the values are out of range
    """
    params = dict(config.get('ga', {}))
    params['random_seed'] = config.get('random_seed')
    try:
        return GAConfig(**params)
    except ValueError as e:
        raise ConfigValidationError(str(e))


def build_stop_criteria(config: Dict[str, Any]) -> StopCriteria:
    stop = config.get('stop', {})
    return StopCriteria(**{key: stop.get(key) for key in STOP_FIELDS})


def _merge_arguments(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Overlay command-line options on a loaded run configuration."""
    merged = {section: dict(config.get(section, {})) for section in ('input', 'output', 'ga', 'stop')}
    merged['random_seed'] = config.get('random_seed')

    if args.instance is not None:
        merged['input']['instance'] = args.instance
    if args.seed is not None:
        merged['random_seed'] = args.seed
    if args.population_size is not None:
        merged['ga']['population_size'] = args.population_size
    if args.generations is not None:
        merged['stop']['max_generations'] = args.generations
    if args.target_fitness is not None:
        merged['stop']['target_fitness'] = args.target_fitness
    if args.time_budget is not None:
        merged['stop']['time_budget_seconds'] = args.time_budget
    if args.log is not None:
        merged['output']['log'] = args.log
    if args.output is not None:
        merged['output']['solution'] = args.output
    if args.overwrite:
        merged['output']['overwrite'] = True
    return merged


def run_from_config(config: Dict[str, Any]) -> None:
    """
    Validate a run configuration and solve its instance.

    Raises:
        ConfigValidationError: If config is invalid
        FatalInputError: If the instance cannot be loaded
    """
    validate_run_config(config)

    instance_path = config.get('input', {}).get('instance')
    if not instance_path:
        raise ConfigValidationError("Missing required field: 'input.instance'")

    ga_config = build_ga_config(config)
    stop = build_stop_criteria(config)

    print(f"Loading instance from: {instance_path}")
    instance = load_instance(instance_path)

    output = config.get('output', {})
    run_solver(
        instance,
        ga_config,
        stop=stop,
        log_path=output.get('log'),
        output_path=output.get('solution'),
        overwrite=bool(output.get('overwrite', False)),
    )


def run_generate(args: argparse.Namespace) -> None:
    """Write a synthetic instance to a file or stdout."""
    seed = args.seed
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    LOG.info("Random seed: %d", seed)
    rng = np.random.default_rng(seed)

    instance = generate_random_instance(
        args.persons, args.groups, rng, mode=args.mode, low=args.low, high=args.high
    )

    if args.output:
        path = save_instance(instance, args.output, overwrite=args.overwrite)
        print(f"Instance written to: {path}")
    else:
        sys.stdout.write(format_instance(instance))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ga_cli.py",
        description="Assign persons to groups with a genetic algorithm",
    )
    parser.add_argument('--log-level', default='WARNING',
                        help="Logging level (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest='command', required=True)

    solve = subparsers.add_parser('solve', help="Evolve solutions for an instance file")
    solve.add_argument('instance', nargs='?', default=None, help="Instance file")
    solve.add_argument('--config', default=None,
                       help=f"Run configuration YAML (default: {DEFAULT_CONFIG_PATH.name})")
    solve.add_argument('--seed', type=int, default=None, help="Random seed")
    solve.add_argument('--population-size', type=int, default=None)
    solve.add_argument('--generations', type=int, default=None,
                       help="Stop after this many generations (default: run until interrupted)")
    solve.add_argument('--target-fitness', type=int, default=None,
                       help="Stop once this fitness is reached")
    solve.add_argument('--time-budget', type=float, default=None,
                       help="Stop after this many seconds")
    solve.add_argument('--log', default=None, help="CSV file for improvement records")
    solve.add_argument('--output', default=None, help="CSV file for the best assignment")
    solve.add_argument('--overwrite', action='store_true', help="Replace existing output files")

    generate = subparsers.add_parser('generate', help="Write a random instance")
    generate.add_argument('persons', type=int)
    generate.add_argument('groups', type=int)
    generate.add_argument('--mode', choices=['weights', 'ranks'], default='weights')
    generate.add_argument('--low', type=int, default=1)
    generate.add_argument('--high', type=int, default=100000)
    generate.add_argument('--seed', type=int, default=None)
    generate.add_argument('--output', default=None, help="Instance file (default: stdout)")
    generate.add_argument('--overwrite', action='store_true')

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parse arguments and run the selected command.

    This is the main entry point called by ga_cli.py.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == 'generate':
        run_generate(args)
        return

    config_path = args.config or DEFAULT_CONFIG_PATH
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)
    run_from_config(_merge_arguments(config, args))
