"""
I/O utilities for the allocation GA.

Handles instance parsing/serialization, synthetic instance generation,
solution reports, and CSV export of assignments and improvement logs.
"""

import csv
from pathlib import Path
from typing import Any, Dict, Sequence, Union

import numpy as np

from .data_models import Candidate, Improvement, ProblemInstance
from .fitness import fitness
from .group_utils import group_sizes


class FatalInputError(ValueError):
    """Raised when an instance file is missing or malformed."""
    pass


def parse_instance(text: str, source: str = "<string>") -> ProblemInstance:
    """
    Parse an instance from its text form.

    Format:
        persons groups
        pref pref ...      (one row of `groups` values per person)
        ...

    Args:
        text: Instance text
        source: Name used in error messages

    Returns:
        ProblemInstance

    Raises:
        FatalInputError: If the text does not follow the format
    """
    lines = [line.split() for line in text.splitlines()]
    lines = [tokens for tokens in lines if tokens]

    if not lines:
        raise FatalInputError(f"{source}: empty instance")

    header = lines[0]
    if len(header) != 2:
        raise FatalInputError(f"{source}: header must be 'persons groups', got {' '.join(header)!r}")
    try:
        persons, groups = int(header[0]), int(header[1])
    except ValueError:
        raise FatalInputError(f"{source}: header values must be integers, got {' '.join(header)!r}")
    if persons < 1 or groups < 1:
        raise FatalInputError(f"{source}: persons and groups must be positive, got {persons} {groups}")

    rows = lines[1:]
    if len(rows) != persons:
        raise FatalInputError(f"{source}: expected {persons} preference rows, found {len(rows)}")

    matrix = np.zeros((persons, groups), dtype=np.int64)
    for p, tokens in enumerate(rows):
        if len(tokens) != groups:
            raise FatalInputError(
                f"{source}: row {p + 1} has {len(tokens)} values, expected {groups}"
            )
        try:
            values = [int(t) for t in tokens]
        except ValueError:
            raise FatalInputError(f"{source}: row {p + 1} contains a non-integer value")
        if any(v < 0 for v in values):
            raise FatalInputError(f"{source}: row {p + 1} contains a negative preference")
        try:
            matrix[p] = values
        except OverflowError:
            raise FatalInputError(f"{source}: row {p + 1} contains a preference too large to store")

    return ProblemInstance(persons=persons, groups=groups, preference=matrix)


def load_instance(path: Union[str, Path]) -> ProblemInstance:
    """
    Load an instance file.

    Args:
        path: Path to the instance file

    Returns:
        ProblemInstance

    Raises:
        FatalInputError: If the file is missing or malformed
    """
    path = Path(path)

    if not path.is_file():
        raise FatalInputError(f"Instance file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise FatalInputError(f"{path}: not a text file ({e.reason})")
    except OSError as e:
        raise FatalInputError(f"Cannot read instance file {path}: {e}")

    return parse_instance(text, source=str(path))


def format_instance(instance: ProblemInstance) -> str:
    """Render an instance in the instance file format."""
    lines = [f"{instance.persons} {instance.groups}"]
    for row in instance.preference:
        lines.append(" ".join(str(int(v)) for v in row))
    return "\n".join(lines) + "\n"


def save_instance(
    instance: ProblemInstance,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save an instance in the instance file format.

    Args:
        instance: Instance to save
        output_path: Destination file
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        f.write(format_instance(instance))

    return output_path


def generate_random_instance(
    persons: int,
    groups: int,
    rng: np.random.Generator,
    mode: str = "weights",
    low: int = 1,
    high: int = 100000
) -> ProblemInstance:
    """
    Generate a synthetic instance for testing and benchmarking.

    Modes:
        weights: every preference uniform in [low, high]
        ranks: every row is a random permutation of 1..groups

    Args:
        persons: Number of persons
        groups: Number of groups
        rng: Random number generator
        mode: "weights" or "ranks"
        low: Smallest preference (weights mode)
        high: Largest preference (weights mode)

    Returns:
        ProblemInstance

    Raises:
        ValueError: If mode or bounds are invalid
    """
    if mode == "weights":
        if low < 0 or high < low:
            raise ValueError(f"Invalid preference range [{low}, {high}]")
        matrix = rng.integers(low, high, size=(persons, groups), endpoint=True)
    elif mode == "ranks":
        matrix = np.array([rng.permutation(groups) + 1 for _ in range(persons)])
    else:
        raise ValueError(f"Invalid mode: {mode}. Must be 'weights' or 'ranks'")

    return ProblemInstance(persons=persons, groups=groups, preference=matrix)


def format_solution(candidate: Candidate, instance: ProblemInstance) -> str:
    """
    Render a candidate as a membership grid, size vector and fitness line.

    Example (4 persons, 2 groups):
        GROUP 0: [ x   x   ]
        GROUP 1: [   x   x ]
        [ 2 2 ]
        Fitness of solution: 23/23
    """
    lines = []
    for g in range(instance.groups):
        marks = " ".join("x" if group == g else " " for group in candidate.assignment)
        lines.append(f"GROUP{g:2d}: [ {marks} ]")

    sizes = group_sizes(candidate, instance.groups)
    lines.append("[ " + " ".join(str(int(s)) for s in sizes) + " ]")
    lines.append(f"Fitness of solution: {fitness(candidate, instance)}/{instance.max_fitness}")
    return "\n".join(lines)


def save_candidate_to_csv(
    candidate: Candidate,
    instance: ProblemInstance,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save an assignment as CSV with columns person,group,preference.

    Args:
        candidate: Complete candidate
        instance: Problem instance (for the realised preference column)
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['person', 'group', 'preference'])

        for person, group in enumerate(candidate.assignment):
            writer.writerow([person, group, int(instance.preference[person, group])])

    return output_path


def save_improvement_log(
    records: Sequence[Union[Improvement, Dict[str, Any]]],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save improvement records to CSV file.

    Args:
        records: Improvements (or their to_dict() rows) in the order they were found
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved log

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Improvement log already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        fieldnames = ['generation', 'fitness', 'max_fitness', 'ratio',
                      'group_sizes', 'origin', 'elapsed_seconds', 'timestamp']
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for record in records:
            if isinstance(record, Improvement):
                record = record.to_dict()
            writer.writerow(record)

    return output_path
