"""
Orchestration module for the allocation GA.

Seeds the population, drives generations and reports every new best
solution. The generation loop is an unbounded lazy sequence; callers decide
when to stop.
"""

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

import numpy as np

from .data_models import Candidate, GAConfig, Improvement, Population, ProblemInstance
from .fitness import fitness_ratio
from .group_utils import group_sizes
from .io_utils import format_solution, save_candidate_to_csv, save_improvement_log
from .repair import greedy_assign
from .selection import next_generation

LOG = logging.getLogger(__name__)


@dataclass
class StopCriteria:
    """
    Optional stopping rules for the evolution loop.

    With every field left at None the loop runs until the caller stops
    consuming it or the process is terminated.

    Attributes:
        max_generations: Stop after this many generation steps
        target_fitness: Stop once the best fitness reaches this value
        time_budget_seconds: Stop once this much wall-clock time has passed
        stop_event: Stop as soon as this event is set
    """
    max_generations: Optional[int] = None
    target_fitness: Optional[int] = None
    time_budget_seconds: Optional[float] = None
    stop_event: Optional[threading.Event] = None

    def reached(self, steps: int, best_fitness: int, elapsed_seconds: float) -> Optional[str]:
        """
        Check the rules after a generation step.

        Returns:
            Name of the rule that fired, or None to continue
        """
        if self.stop_event is not None and self.stop_event.is_set():
            return "stop_event"
        if self.max_generations is not None and steps >= self.max_generations:
            return "max_generations"
        if self.target_fitness is not None and best_fitness >= self.target_fitness:
            return "target_fitness"
        if self.time_budget_seconds is not None and elapsed_seconds >= self.time_budget_seconds:
            return "time_budget_seconds"
        return None


def seed_population(
    instance: ProblemInstance,
    config: GAConfig,
    rng: np.random.Generator
) -> Population:
    """
    Build the initial population by greedy assignment.

    Every candidate starts fully unassigned; random tie-breaking in the
    greedy step gives the population its diversity.

    Args:
        instance: Problem instance
        config: GA configuration
        rng: Random number generator

    Returns:
        Population of config.population_size candidates, generation 0
    """
    candidates = []
    for _ in range(config.population_size):
        candidate = Candidate.empty(instance.persons, origin="greedy")
        candidates.append(greedy_assign(candidate, instance, rng))
    return Population(candidates=candidates, generation=0)


def iter_generations(
    instance: ProblemInstance,
    config: GAConfig,
    rng: np.random.Generator,
    population: Optional[Population] = None
) -> Iterator[Population]:
    """
    Yield successive generations forever.

    Each population is complete before the next step starts. Passing a
    previously yielded population resumes from it.

    Args:
        instance: Problem instance
        config: GA configuration
        rng: Random number generator
        population: Population to continue from (seeded when omitted)

    Yields:
        The population after each generation step
    """
    if population is None:
        population = seed_population(instance, config, rng)

    while True:
        population = next_generation(population, instance, config, rng)
        yield population


def evolve(
    instance: ProblemInstance,
    config: GAConfig,
    rng: np.random.Generator,
    stop: Optional[StopCriteria] = None,
    population: Optional[Population] = None
) -> Iterator[Improvement]:
    """
    Evolve the population and yield each strictly better solution.

    Generations that do not beat the best fitness seen so far yield
    nothing, so improvements arrive often at first and rarely later.

    Args:
        instance: Problem instance
        config: GA configuration
        rng: Random number generator
        stop: Stopping rules (None runs forever)
        population: Population to continue from (seeded when omitted)

    Yields:
        Improvement records with strictly increasing fitness
    """
    stop = stop or StopCriteria()
    start = time.monotonic()
    best_fitness = 0
    steps = 0

    for current in iter_generations(instance, config, rng, population):
        steps += 1
        candidate, value = current.best(instance)

        if value > best_fitness:
            best_fitness = value
            elapsed = time.monotonic() - start
            LOG.info(
                "generation %d: new best fitness %d/%d (%.2f%%)",
                current.generation, value, instance.max_fitness,
                100 * fitness_ratio(value, instance)
            )
            yield Improvement(
                generation=current.generation,
                fitness=value,
                max_fitness=instance.max_fitness,
                candidate=candidate.copy(),
                group_sizes=[int(s) for s in group_sizes(candidate, instance.groups)],
                elapsed_seconds=elapsed,
            )

        reason = stop.reached(steps, best_fitness, time.monotonic() - start)
        if reason is not None:
            LOG.info("Stopping after %d generations (%s)", steps, reason)
            return


def run_solver(
    instance: ProblemInstance,
    config: GAConfig,
    stop: Optional[StopCriteria] = None,
    report: bool = True,
    log_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None,
    overwrite: bool = False
) -> Optional[Improvement]:
    """
    Solve an instance and report every improvement on the console.

    Algorithm:
        1. Setup RNG (config.random_seed, or a fresh seed that is printed)
        2. Seed the population greedily
        3. Evolve until a stop rule fires (or forever without one)
        4. Print each improvement as it is found
        5. Save the improvement log and best assignment (if requested),
           also when the run is interrupted

    Args:
        instance: Problem instance
        config: GA configuration
        stop: Stopping rules
        report: Print improvements to stdout
        log_path: CSV file for improvement records
        output_path: CSV file for the best assignment
        overwrite: Allow replacing existing output files

    Returns:
        The last improvement found, or None if no positive fitness was reached
    """
    if report:
        print("=" * 70)
        print("ALLOCATION GA")
        print("=" * 70)
        print(f"Persons: {instance.persons}  Groups: {instance.groups}  "
              f"Capacity: {instance.ceiling}")
        print(f"Upper bound (max fitness): {instance.max_fitness}")
        print(f"Population size: {config.population_size}")

    # Setup RNG
    seed = config.random_seed
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    LOG.info("Random seed: %d", seed)
    if report:
        print(f"Random seed: {seed}\n")
    rng = np.random.default_rng(seed)

    # Only the latest candidate is kept; earlier improvements stay as log rows
    best = None
    log_rows = []
    try:
        for improvement in evolve(instance, config, rng, stop):
            best = improvement
            log_rows.append(improvement.to_dict())
            if report:
                print(f"Generation {improvement.generation} "
                      f"({improvement.elapsed_seconds:.1f}s, {improvement.ratio:.2%} of bound)")
                print(format_solution(improvement.candidate, instance))
                print()
    finally:
        if log_path is not None:
            save_improvement_log(log_rows, log_path, overwrite=overwrite)
        if output_path is not None and best is not None:
            save_candidate_to_csv(best.candidate, instance, output_path, overwrite=overwrite)

        if report:
            print("=" * 70)
            print("SUMMARY")
            print("=" * 70)
            print(f"Improvements: {len(log_rows)}")
            if best is not None:
                print(f"Best fitness: {best.fitness}/{best.max_fitness} "
                      f"(generation {best.generation})")
            if log_path is not None:
                print(f"Improvement log: {log_path}")
            if output_path is not None and best is not None:
                print(f"Best assignment: {output_path}")

    return best
