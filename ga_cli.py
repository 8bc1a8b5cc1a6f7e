#!/usr/bin/env python3
"""
Allocation GA CLI - Minimal entry point.

Assigns persons to groups so that total preference is maximised, using a
genetic algorithm. Defaults come from ga_alloc/ga_alloc_config.yaml.

Usage:
    python3 ga_cli.py solve INSTANCE [options]
    python3 ga_cli.py generate PERSONS GROUPS [options]
    python3 ga_cli.py --help

Examples:
    # Evolve until interrupted, printing every better solution
    python3 ga_cli.py solve data/sample_4x2.txt

    # Stop after 200 generations and keep the best assignment
    python3 ga_cli.py solve data/sample_4x2.txt --generations 200 --output best.csv

    # Write a random 50x5 instance
    python3 ga_cli.py generate 50 5 --output data/random_50x5.txt
"""

import sys


def main():
    """Main entry point for the allocation GA CLI."""
    try:
        from ga_alloc.cli import main as cli_main
        cli_main(sys.argv[1:])
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
