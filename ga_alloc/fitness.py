"""
Fitness evaluation for the allocation GA.

The fitness of a candidate is the sum of the preferences its persons
realise in their assigned groups.
"""

from typing import List, Sequence

import numpy as np

from .data_models import Candidate, ProblemInstance


def fitness(candidate: Candidate, instance: ProblemInstance) -> int:
    """
    Score a complete candidate.

    Args:
        candidate: Fully assigned candidate
        instance: Problem instance providing the preference matrix

    Returns:
        Sum over persons of preference[person][group]

    Raises:
        ValueError: If the candidate has the wrong length, unassigned persons
            or group indices out of range
    """
    if len(candidate) != instance.persons:
        raise ValueError(
            f"Candidate has {len(candidate)} entries, instance has {instance.persons} persons"
        )
    if not candidate.is_complete():
        raise ValueError("Cannot score a candidate with unassigned persons")
    if any(not 0 <= g < instance.groups for g in candidate.assignment):
        raise ValueError(f"Candidate has group indices outside 0..{instance.groups - 1}")

    groups = np.array(candidate.assignment, dtype=np.int64)
    return int(instance.preference[np.arange(instance.persons), groups].sum())


def population_fitness(
    candidates: Sequence[Candidate],
    instance: ProblemInstance
) -> List[int]:
    """Score each candidate once, in order."""
    return [fitness(c, instance) for c in candidates]


def fitness_ratio(value: int, instance: ProblemInstance) -> float:
    """
    Express a fitness value as a share of the instance's upper bound.

    Returns:
        value / max_fitness, or 1.0 when max_fitness is zero
    """
    bound = instance.max_fitness
    if bound == 0:
        return 1.0
    return value / bound
