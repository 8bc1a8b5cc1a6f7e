"""
Group utilities for the allocation GA.

Functions that derive group sizes, memberships and capacity information
from candidates. Nothing here is stored; every value is recomputed on demand.
"""

from typing import Dict, List

import numpy as np

from .data_models import Candidate, ProblemInstance


def group_sizes(candidate: Candidate, groups: int) -> np.ndarray:
    """
    Count members per group, ignoring unassigned persons.

    Args:
        candidate: Candidate (complete or partial)
        groups: Number of groups

    Returns:
        Integer array of length groups

    Example:
        >>> group_sizes(Candidate([0, 1, None, 1]), 2)
        array([1, 2])
    """
    assigned = [g for g in candidate.assignment if g is not None]
    return np.bincount(np.array(assigned, dtype=np.int64), minlength=groups)


def group_members(candidate: Candidate, groups: int) -> Dict[int, List[int]]:
    """
    Partition assigned persons by group.

    Args:
        candidate: Candidate (complete or partial)
        groups: Number of groups

    Returns:
        Dict mapping every group index to its member persons (ascending)
    """
    members = {g: [] for g in range(groups)}
    for person, group in enumerate(candidate.assignment):
        if group is not None:
            members[group].append(person)
    return members


def overfull_groups(candidate: Candidate, instance: ProblemInstance) -> List[int]:
    """
    Groups whose member count exceeds the capacity ceiling.

    Args:
        candidate: Candidate to inspect
        instance: Problem instance providing groups and ceiling

    Returns:
        Group indices in ascending order
    """
    sizes = group_sizes(candidate, instance.groups)
    return [int(g) for g in np.flatnonzero(sizes > instance.ceiling)]


def is_feasible(candidate: Candidate, instance: ProblemInstance) -> bool:
    """
    Check that a candidate may be stored in a population.

    A feasible candidate has one valid group per person and no group
    above the capacity ceiling.
    """
    if len(candidate) != instance.persons or not candidate.is_complete():
        return False
    if any(not 0 <= g < instance.groups for g in candidate.assignment):
        return False
    return not overfull_groups(candidate, instance)
