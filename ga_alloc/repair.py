"""
Greedy completion and capacity repair for the allocation GA.

Provides functions to complete partially assigned candidates and to restore
the capacity ceiling on candidates produced by crossover or random
construction.
"""

import logging
import warnings
from typing import List, Optional

import numpy as np

from .data_models import Candidate, ProblemInstance
from .group_utils import group_members, group_sizes

LOG = logging.getLogger(__name__)


class AssignmentIncomplete(UserWarning):
    """Issued when greedy assignment has only zero preferences left for a group."""
    pass


def greedy_assign(
    candidate: Candidate,
    instance: ProblemInstance,
    rng: np.random.Generator,
    sizes: Optional[np.ndarray] = None
) -> Candidate:
    """
    Assign every unassigned person, filling the smallest groups first.

    Algorithm:
    1. Pick the group with the fewest members (lowest index on ties)
    2. Find the highest preference for that group among unassigned persons
    3. If that preference is zero, warn with AssignmentIncomplete and go on
    4. Place a random person among those tied at that preference
    5. Repeat until nobody is unassigned

    Args:
        candidate: Candidate with zero or more unassigned persons (modified in place)
        instance: Problem instance
        rng: Random number generator
        sizes: Current group sizes (derived from the candidate if omitted)

    Returns:
        The same candidate, now complete
    """
    if sizes is None:
        sizes = group_sizes(candidate, instance.groups)
    else:
        sizes = np.array(sizes, dtype=np.int64, copy=True)

    open_mask = np.array([g is None for g in candidate.assignment], dtype=bool)
    remaining = int(open_mask.sum())

    while remaining > 0:
        group = int(np.argmin(sizes))

        column = np.where(open_mask, instance.preference[:, group], -1)
        best = column.max()
        if best == 0:
            warnings.warn(
                f"Greedy assignment could not fully assign persons to groups: "
                f"best remaining preference for group {group} is 0",
                AssignmentIncomplete,
                stacklevel=2,
            )

        tied = np.flatnonzero(column == best)
        person = int(rng.choice(tied))

        candidate.assign(person, group)
        open_mask[person] = False
        sizes[group] += 1
        remaining -= 1

        LOG.debug("greedy: assign person %d to group %d (preference %d)", person, group, best)

    return candidate


def evict_overfull(
    candidate: Candidate,
    instance: ProblemInstance,
    rng: np.random.Generator
) -> List[int]:
    """
    Unassign random members of every group above the capacity ceiling.

    Each overfull group loses uniformly chosen members until it holds
    exactly `ceiling` persons. Groups at or below the ceiling are untouched.

    Args:
        candidate: Candidate to trim (modified in place)
        instance: Problem instance
        rng: Random number generator

    Returns:
        Evicted persons, in eviction order
    """
    ceiling = instance.ceiling
    evicted = []

    for group, members in group_members(candidate, instance.groups).items():
        while len(members) > ceiling:
            person = members.pop(int(rng.integers(0, len(members))))
            candidate.unassign(person)
            evicted.append(person)

    if evicted:
        LOG.debug("repair: evicted %d persons from overfull groups", len(evicted))

    return evicted


def repair_capacity(
    candidate: Candidate,
    instance: ProblemInstance,
    rng: np.random.Generator
) -> Candidate:
    """
    Restore capacity feasibility.

    Steps:
    1. Evict random members from overfull groups
    2. Greedily re-assign evicted (and any other unassigned) persons

    Underfull groups only receive whoever greedy assignment hands them;
    they are not rebalanced otherwise.

    Args:
        candidate: Possibly infeasible candidate (modified in place)
        instance: Problem instance
        rng: Random number generator

    Returns:
        The same candidate, complete and within the ceiling
    """
    assert instance.ceiling * instance.groups >= instance.persons

    evicted = evict_overfull(candidate, instance, rng)
    greedy_assign(candidate, instance, rng)

    candidate.metadata["evicted"] = len(evicted)
    return candidate
