#!/usr/bin/env python3
"""
Test runner for the allocation GA
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

def run_all_tests():
    """Run all test modules"""
    loader = unittest.TestLoader()
    start_dir = Path(__file__).parent / "tests" / "test_ga_alloc"
    suite = loader.discover(str(start_dir), top_level_dir=str(start_dir))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_integration_test():
    """Solve the bundled 4x2 sample and check the known optimum"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    try:
        from ga_alloc.data_models import GAConfig
        from ga_alloc.group_utils import is_feasible
        from ga_alloc.io_utils import load_instance
        from ga_alloc.orchestration import StopCriteria, run_solver

        instance_path = Path(__file__).parent / "data" / "sample_4x2.txt"
        print(f"Loading instance from {instance_path}...")
        instance = load_instance(instance_path)

        print("Running allocation GA...")
        config = GAConfig(population_size=50, random_seed=0)
        best = run_solver(instance, config, stop=StopCriteria(max_generations=20), report=False)

        print(f"Best fitness: {best.fitness}/{best.max_fitness}")
        print(f"Group sizes: {best.group_sizes}")

        success = (
            best.fitness == 23 and
            best.group_sizes == [2, 2] and
            is_feasible(best.candidate, instance)
        )

        if success:
            print("✓ Integration test PASSED")
        else:
            print("✗ Integration test FAILED")

        return success

    except Exception as e:
        print(f"✗ Integration test FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Running Allocation GA Tests")
    print("=" * 60)

    # Run unit tests
    print("Running unit tests...")
    unit_success = run_all_tests()

    # Run integration test
    integration_success = run_integration_test()

    # Summary
    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
