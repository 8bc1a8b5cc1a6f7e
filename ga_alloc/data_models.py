"""
Data models for the allocation GA.

Core data structures representing the problem instance, candidate
assignments, populations, algorithm configuration and improvement records.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional

import numpy as np


@dataclass(frozen=True, eq=False)
class ProblemInstance:
    """
    Immutable preference matrix for an allocation problem.

    Attributes:
        persons: Number of persons to place
        groups: Number of destination groups
        preference: Matrix of shape (persons, groups); preference[p][g] is
            person p's non-negative value for being placed in group g
    """
    persons: int
    groups: int
    preference: np.ndarray

    def __post_init__(self):
        """Validate dimensions and freeze the preference matrix."""
        if self.persons < 1:
            raise ValueError(f"persons must be >= 1, got {self.persons}")
        if self.groups < 1:
            raise ValueError(f"groups must be >= 1, got {self.groups}")

        matrix = np.array(self.preference, dtype=np.int64, copy=True)
        if matrix.shape != (self.persons, self.groups):
            raise ValueError(
                f"Preference matrix has shape {matrix.shape}, "
                f"expected ({self.persons}, {self.groups})"
            )
        if (matrix < 0).any():
            raise ValueError("Preferences must be non-negative")

        matrix.setflags(write=False)
        object.__setattr__(self, "preference", matrix)

    @classmethod
    def from_rows(cls, rows: list[list[int]]) -> "ProblemInstance":
        """
        Build an instance from a list of preference rows.

        Args:
            rows: One list of per-group preferences per person

        Returns:
            ProblemInstance sized from the rows
        """
        if not rows:
            raise ValueError("At least one preference row is required")
        return cls(persons=len(rows), groups=len(rows[0]), preference=np.array(rows))

    @property
    def max_fitness(self) -> int:
        """Upper bound on fitness: every person in their favourite group."""
        return int(self.preference.max(axis=1).sum())

    @property
    def ceiling(self) -> int:
        """Capacity ceiling per group, ceil(persons / groups)."""
        return math.ceil(self.persons / self.groups)


@dataclass
class Candidate:
    """
    One person-to-group assignment (an individual in the GA population).

    Attributes:
        assignment: Group index per person, or None while the person is unassigned
        origin: How this candidate was produced ("greedy", "crossover", "immigrant")
        metadata: Additional information (parent labels, repair notes, etc.)
    """
    assignment: list[Optional[int]]
    origin: str = "greedy"
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls, persons: int, origin: str = "greedy") -> "Candidate":
        """Create a candidate with every person unassigned."""
        return cls(assignment=[None] * persons, origin=origin)

    def copy(self) -> "Candidate":
        """
        Create an independent copy of this candidate.

        Returns:
            New Candidate with copied assignment and metadata
        """
        return Candidate(
            assignment=list(self.assignment),
            origin=self.origin,
            metadata=self.metadata.copy(),
        )

    def __len__(self) -> int:
        return len(self.assignment)

    def __getitem__(self, person: int) -> Optional[int]:
        return self.assignment[person]

    def assign(self, person: int, group: int) -> None:
        self.assignment[person] = group

    def unassign(self, person: int) -> None:
        self.assignment[person] = None

    def unassigned(self) -> list[int]:
        """
        Get the persons that currently have no group.

        Returns:
            Person indices in ascending order
        """
        return [p for p, g in enumerate(self.assignment) if g is None]

    def is_complete(self) -> bool:
        """True when every person has a group."""
        return all(g is not None for g in self.assignment)


@dataclass
class Population:
    """
    Ordered collection of complete, capacity-feasible candidates.

    A population is never edited across generations; each generation step
    builds a new one.

    Attributes:
        candidates: Candidates in population order
        generation: Generation number (0 for the seeded population)
    """
    candidates: list[Candidate]
    generation: int = 0

    def __post_init__(self):
        """Validate population."""
        if not self.candidates:
            raise ValueError("Population must contain at least one candidate")

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    def fitness_values(self, instance: ProblemInstance) -> list[int]:
        """
        Score every candidate once.

        Args:
            instance: Problem instance to score against

        Returns:
            Fitness per candidate, in population order
        """
        from .fitness import population_fitness
        return population_fitness(self.candidates, instance)

    def best(self, instance: ProblemInstance) -> tuple[Candidate, int]:
        """
        Find the fittest candidate (lowest index wins ties).

        Returns:
            Tuple of (candidate, fitness)
        """
        values = self.fitness_values(instance)
        index = int(np.argmax(values))
        return self.candidates[index], values[index]


@dataclass(frozen=True)
class GAConfig:
    """
    Genetic algorithm parameters.

    Attributes:
        population_size: Number of candidates per generation
        elite_ratio: Share of the population kept as the fittest candidates
        random_retention_ratio: Share of the population kept at random from the rest
        crossover_budget_ratio: Share of the population refilled with crossover children
        random_seed: Seed for the run's random generator (None draws one from the OS)
    """
    population_size: int = 1000
    elite_ratio: float = 0.3
    random_retention_ratio: float = 0.2
    crossover_budget_ratio: float = 0.2
    random_seed: Optional[int] = None

    def __post_init__(self):
        """Validate parameter ranges."""
        if not isinstance(self.population_size, int) or self.population_size < 1:
            raise ValueError(
                f"population_size must be a positive integer, got {self.population_size}"
            )
        for name in ("elite_ratio", "random_retention_ratio", "crossover_budget_ratio"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.elite_ratio + self.random_retention_ratio > 1.0:
            raise ValueError(
                "elite_ratio + random_retention_ratio must not exceed 1, got "
                f"{self.elite_ratio} + {self.random_retention_ratio}"
            )

    @property
    def num_elite(self) -> int:
        return int(self.elite_ratio * self.population_size)

    @property
    def num_random(self) -> int:
        return int(self.random_retention_ratio * self.population_size)

    @property
    def num_crossover(self) -> int:
        return int(self.crossover_budget_ratio * self.population_size)

    def to_dict(self) -> dict[str, Any]:
        return {
            "population_size": self.population_size,
            "elite_ratio": self.elite_ratio,
            "random_retention_ratio": self.random_retention_ratio,
            "crossover_budget_ratio": self.crossover_budget_ratio,
            "random_seed": self.random_seed,
        }


@dataclass
class Improvement:
    """
    A new best solution found by the evolution loop.

    Attributes:
        generation: Generation in which the candidate was found
        fitness: Fitness of the candidate
        max_fitness: Upper bound of the instance
        candidate: Copy of the best candidate
        group_sizes: Member count per group
        elapsed_seconds: Time since the loop started
        timestamp: When the improvement was recorded
    """
    generation: int
    fitness: int
    max_fitness: int
    candidate: Candidate
    group_sizes: list[int]
    elapsed_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def ratio(self) -> float:
        """Fitness as a share of max_fitness."""
        if self.max_fitness == 0:
            return 1.0
        return self.fitness / self.max_fitness

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the record to a dictionary for CSV export.

        Returns:
            Dictionary with string-serializable values
        """
        return {
            "generation": self.generation,
            "fitness": self.fitness,
            "max_fitness": self.max_fitness,
            "ratio": f"{self.ratio:.6f}",
            "group_sizes": " ".join(str(s) for s in self.group_sizes),
            "origin": self.candidate.origin,
            "elapsed_seconds": f"{self.elapsed_seconds:.3f}",
            "timestamp": self.timestamp,
        }
