"""
Genetic algorithm for preference-based group allocation.

This package assigns persons to groups so that the sum of the persons'
preferences for their groups is as high as possible, while no group holds
more than ceil(persons / groups) members.

Key Features:
- Greedy seeding that fills the smallest group first
- Capacity repair after crossover and random construction
- Elitism + random retention + midpoint crossover + fresh immigrants
- Lazy, caller-stoppable evolution loop that reports each improvement

Modules:
- data_models: Core data structures (ProblemInstance, Candidate, Population, GAConfig, Improvement)
- group_utils: Group sizes, memberships and capacity checks
- fitness: Fitness evaluation
- repair: Greedy assignment and capacity repair
- crossover: Midpoint crossover operator
- selection: One generation of selection and replacement
- orchestration: Seeding, evolution loop and console reporting
- io_utils: Instance files, synthetic instances, solution reports and CSV export
- cli: Run configuration and command-line interface
"""

__version__ = "0.1.0"
__author__ = "Allocation Optimization Team"

from .data_models import Candidate, GAConfig, Improvement, Population, ProblemInstance
from .fitness import fitness
from .io_utils import FatalInputError, load_instance
from .orchestration import StopCriteria, evolve, run_solver
from .repair import AssignmentIncomplete

__all__ = [
    "Candidate",
    "GAConfig",
    "Improvement",
    "Population",
    "ProblemInstance",
    "fitness",
    "FatalInputError",
    "load_instance",
    "StopCriteria",
    "evolve",
    "run_solver",
    "AssignmentIncomplete",
]
