"""
Selection and replacement for the allocation GA.

One generation step: keep the elite, keep a random sample of the rest,
drop everything else, refill with crossover children and finally with
fresh random immigrants.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .crossover import midpoint_crossover
from .data_models import Candidate, GAConfig, Population, ProblemInstance
from .repair import repair_capacity

LOG = logging.getLogger(__name__)


def select_elite(fitness_values: Sequence[int], count: int) -> List[int]:
    """
    Pick the indices of the `count` fittest candidates.

    Ties are resolved in favour of the lower index, which matches
    repeatedly taking the first maximum of what is left.

    Args:
        fitness_values: Fitness per candidate
        count: Number of indices to return

    Returns:
        Indices in descending fitness order
    """
    order = sorted(range(len(fitness_values)), key=lambda i: -fitness_values[i])
    return order[:count]


def select_random_survivors(
    remaining: Sequence[int],
    count: int,
    rng: np.random.Generator
) -> List[int]:
    """
    Draw `count` indices uniformly at random without replacement.

    Args:
        remaining: Indices eligible for retention
        count: Number to draw (clipped to len(remaining))
        rng: Random number generator

    Returns:
        Drawn indices in draw order
    """
    count = min(count, len(remaining))
    if count == 0:
        return []
    picks = rng.choice(len(remaining), size=count, replace=False)
    return [remaining[int(i)] for i in picks]


def select_two_parents(
    survivors: Sequence[Candidate],
    rng: np.random.Generator
) -> Tuple[Candidate, Candidate]:
    """
    Select two distinct survivors for crossover.

    Args:
        survivors: Candidates kept this generation
        rng: Random number generator

    Returns:
        Tuple of (parent_a, parent_b)

    Raises:
        ValueError: If fewer than 2 survivors are available
    """
    if len(survivors) < 2:
        raise ValueError(f"Need at least 2 parents for crossover, got {len(survivors)}")

    idx_a, idx_b = rng.choice(len(survivors), size=2, replace=False)
    return survivors[int(idx_a)], survivors[int(idx_b)]


def random_candidate(instance: ProblemInstance, rng: np.random.Generator) -> Candidate:
    """
    Build a fresh immigrant: every person in an independent random group,
    then repaired to the capacity ceiling.
    """
    groups = rng.integers(0, instance.groups, size=instance.persons)
    candidate = Candidate(assignment=[int(g) for g in groups], origin="immigrant")
    return repair_capacity(candidate, instance, rng)


def next_generation(
    population: Population,
    instance: ProblemInstance,
    config: GAConfig,
    rng: np.random.Generator
) -> Population:
    """
    Run one selection/replacement step.

    Algorithm:
        1. Elite: the floor(elite_ratio * N) fittest candidates
        2. Random retention: floor(random_retention_ratio * N) of the rest
        3. Drop the remaining candidates
        4. Crossover: up to floor(crossover_budget_ratio * N) children of
           two distinct survivors, capped at the free slots
        5. Immigrants: fill whatever is still free

    Args:
        population: Current population
        instance: Problem instance
        config: GA configuration
        rng: Random number generator

    Returns:
        New population of exactly config.population_size candidates
    """
    size = config.population_size
    fitness_values = population.fitness_values(instance)

    elite = select_elite(fitness_values, min(config.num_elite, size))
    elite_set = set(elite)
    remaining = [i for i in range(len(population)) if i not in elite_set]
    retained = select_random_survivors(
        remaining, min(config.num_random, size - len(elite)), rng
    )

    survivors = [population.candidates[i] for i in elite + retained]
    next_candidates = list(survivors)

    num_children = min(config.num_crossover, size - len(next_candidates))
    if len(survivors) < 2:
        num_children = 0
    for _ in range(num_children):
        parent_a, parent_b = select_two_parents(survivors, rng)
        next_candidates.append(midpoint_crossover(parent_a, parent_b, instance, rng))

    num_immigrants = size - len(next_candidates)
    for _ in range(num_immigrants):
        next_candidates.append(random_candidate(instance, rng))

    LOG.debug(
        "generation %d: %d elite, %d retained, %d children, %d immigrants",
        population.generation + 1, len(elite), len(retained), num_children, num_immigrants
    )

    return Population(candidates=next_candidates, generation=population.generation + 1)
