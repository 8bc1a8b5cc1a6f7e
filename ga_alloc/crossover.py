"""
Crossover operator for the allocation GA.

Implements single fixed-midpoint crossover: the child inherits the first
half of the persons from one parent and the second half from the other,
then capacity repair makes it feasible again.
"""

import logging

import numpy as np

from .data_models import Candidate, ProblemInstance
from .repair import repair_capacity

LOG = logging.getLogger(__name__)


def midpoint_splice(parent_a: Candidate, parent_b: Candidate) -> Candidate:
    """
    Combine two parents at the fixed midpoint.

    Persons p < len // 2 take their group from parent_a, the rest from
    parent_b. No randomness is involved.

    Args:
        parent_a: First parent
        parent_b: Second parent

    Returns:
        Provisional child (may exceed the capacity ceiling)

    Raises:
        ValueError: If the parents have different lengths
    """
    if len(parent_a) != len(parent_b):
        raise ValueError(
            f"Parents must have equal length, got {len(parent_a)} and {len(parent_b)}"
        )

    midpoint = len(parent_a) // 2
    assignment = parent_a.assignment[:midpoint] + parent_b.assignment[midpoint:]

    return Candidate(
        assignment=assignment,
        origin="crossover",
        metadata={"midpoint": midpoint, "provisional": True},
    )


def midpoint_crossover(
    parent_a: Candidate,
    parent_b: Candidate,
    instance: ProblemInstance,
    rng: np.random.Generator
) -> Candidate:
    """
    Produce one feasible child from two parents.

    Args:
        parent_a: Parent supplying the first half
        parent_b: Parent supplying the second half
        instance: Problem instance
        rng: Random number generator (used by repair)

    Returns:
        Repaired child candidate
    """
    child = midpoint_splice(parent_a, parent_b)
    repair_capacity(child, instance, rng)
    child.metadata["provisional"] = False

    LOG.debug(
        "crossover: child spliced at %d, %d persons re-assigned",
        child.metadata["midpoint"], child.metadata["evicted"]
    )
    return child
