"""
Random ordering of participants before they are placed in a bracket.
"""
import random
from typing import List, Sequence, TypeVar

T = TypeVar('T')


def shuffle(items: Sequence[T], rng=random) -> List[T]:
    """Return a new list with the items in uniformly random order (Fisher-Yates)."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result
