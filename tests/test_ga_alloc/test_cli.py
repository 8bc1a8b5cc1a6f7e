"""
Tests for run configuration handling and the command-line interface.
"""

import contextlib
import csv
import io
import shutil
import tempfile
import unittest
from pathlib import Path

import yaml

from ga_alloc.cli import (
    ConfigValidationError,
    DEFAULT_CONFIG_PATH,
    load_run_config,
    validate_run_config,
    build_ga_config,
    build_stop_criteria,
    run_from_config,
    main,
)
from ga_alloc.io_utils import FatalInputError, load_instance


SAMPLE_TEXT = "4 2\n5 1\n1 5\n3 3\n0 10\n"


class TestRunConfig(unittest.TestCase):
    """Test run configuration loading and validation."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, name, text):
        path = self.temp_dir / name
        path.write_text(text)
        return path

    def test_default_config(self):
        """Test the shipped default configuration."""
        config = load_run_config(DEFAULT_CONFIG_PATH)
        validate_run_config(config)

        ga_config = build_ga_config(config)
        self.assertEqual(ga_config.population_size, 1000)
        self.assertEqual(ga_config.elite_ratio, 0.3)
        self.assertEqual(ga_config.random_retention_ratio, 0.2)
        self.assertEqual(ga_config.crossover_budget_ratio, 0.2)
        self.assertIsNone(ga_config.random_seed)

        stop = build_stop_criteria(config)
        self.assertIsNone(stop.max_generations)
        self.assertIsNone(stop.time_budget_seconds)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_run_config(self.temp_dir / "missing.yaml")

    def test_empty_file(self):
        with self.assertRaises(ConfigValidationError):
            load_run_config(self._write("empty.yaml", ""))

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigValidationError):
            load_run_config(self._write("bad.yaml", "ga: [unclosed"))

    def test_non_mapping(self):
        with self.assertRaises(ConfigValidationError):
            load_run_config(self._write("list.yaml", "- 1\n- 2\n"))

    def test_validation_errors(self):
        """Test that invalid structures are rejected."""
        bad_configs = [
            {'ga': [1, 2]},
            {'ga': {'mutation_rate': 0.1}},
            {'ga': {'population_size': 0}},
            {'ga': {'population_size': 'many'}},
            {'ga': {'elite_ratio': 'high'}},
            {'stop': {'max_generations': -1}},
            {'stop': {'time_budget_seconds': 0}},
            {'stop': {'forever': True}},
            {'random_seed': -3},
            {'stop': {'target_fitness': 'high'}},
            {'stop': {'target_fitness': 12.5}},
            {'stop': {'max_generations': True}},
            {'ga': {'elite_ratio': True}},
            {'ga': {'population_size': True}},
            {'random_seed': False},
        ]
        for config in bad_configs:
            with self.subTest(config=config):
                with self.assertRaises(ConfigValidationError):
                    validate_run_config(config)

    def test_ratio_constraint(self):
        """Test elite + random retention must not exceed 1."""
        config = {'ga': {'elite_ratio': 0.8, 'random_retention_ratio': 0.3}}
        validate_run_config(config)
        with self.assertRaises(ConfigValidationError):
            build_ga_config(config)

    def test_build_from_sections(self):
        config = {
            'ga': {'population_size': 50, 'elite_ratio': 0.1},
            'random_seed': 9,
            'stop': {'max_generations': 20, 'target_fitness': 100},
        }
        validate_run_config(config)

        ga_config = build_ga_config(config)
        stop = build_stop_criteria(config)

        self.assertEqual(ga_config.population_size, 50)
        self.assertEqual(ga_config.elite_ratio, 0.1)
        self.assertEqual(ga_config.random_retention_ratio, 0.2)
        self.assertEqual(ga_config.random_seed, 9)
        self.assertEqual(stop.max_generations, 20)
        self.assertEqual(stop.target_fitness, 100)

    def test_run_from_config_requires_instance(self):
        with self.assertRaises(ConfigValidationError):
            run_from_config({'input': {}})

    def test_run_from_config_missing_instance_file(self):
        with self.assertRaises(FatalInputError):
            run_from_config({'input': {'instance': str(self.temp_dir / "nope.txt")}})


class TestMain(unittest.TestCase):
    """Test command dispatch."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.instance_path = self.temp_dir / "sample.txt"
        self.instance_path.write_text(SAMPLE_TEXT)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_generate_command(self):
        output = self.temp_dir / "random.txt"

        with contextlib.redirect_stdout(io.StringIO()):
            main(['generate', '12', '3', '--seed', '1', '--output', str(output)])

        instance = load_instance(output)
        self.assertEqual(instance.persons, 12)
        self.assertEqual(instance.groups, 3)

    def test_generate_to_stdout(self):
        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            main(['generate', '3', '2', '--mode', 'ranks', '--seed', '2'])

        lines = buffer.getvalue().splitlines()
        self.assertEqual(lines[0], "3 2")
        self.assertEqual(len(lines), 4)

    def test_solve_command(self):
        """Test a bounded solve run writes the best assignment."""
        output = self.temp_dir / "best.csv"
        log = self.temp_dir / "log.csv"

        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            main([
                'solve', str(self.instance_path),
                '--seed', '3',
                '--population-size', '10',
                '--generations', '3',
                '--log', str(log),
                '--output', str(output),
            ])

        self.assertIn("Fitness of solution: 23/23", buffer.getvalue())
        with open(output, newline='') as f:
            self.assertEqual([int(r['group']) for r in csv.DictReader(f)], [0, 1, 0, 1])
        self.assertTrue(log.exists())

    def test_solve_with_config_file(self):
        """Test that a run configuration drives the solver."""
        output = self.temp_dir / "best.csv"
        config_path = self.temp_dir / "run.yaml"
        config_path.write_text(yaml.safe_dump({
            'input': {'instance': str(self.instance_path)},
            'output': {'solution': str(output)},
            'ga': {'population_size': 8},
            'random_seed': 11,
            'stop': {'target_fitness': 23},
        }))

        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            main(['solve', '--config', str(config_path)])

        self.assertIn("Random seed: 11", buffer.getvalue())
        self.assertTrue(output.exists())


if __name__ == '__main__':
    unittest.main()
