"""
Answer option shuffling.
"""
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Return a random permutation of items using Fisher-Yates.

    The input sequence is not modified.

    Args:
        items: Items to shuffle
        rng: Random source, defaults to the module-level generator

    Returns:
        New list with the same items in random order
    """
    source = rng if rng is not None else random
    shuffled = list(items)

    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled
