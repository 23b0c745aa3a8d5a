"""
Deterministic shuffling for paginated random listings.

A client paging through "random" results must see one consistent ordering,
otherwise pages would overlap or skip entries. The permutation therefore
depends only on (user, namespace, time window) and the number of items.
"""

import hashlib
import random
import time
from functools import lru_cache
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")


@lru_cache(maxsize=64)
def _permutation(seed: str, total: int) -> tuple[int, ...]:
    # Create a deterministic random state from the seed
    seed_hash = int(hashlib.sha256(seed.encode()).hexdigest(), 16) % (2**32)
    rng = random.Random(seed_hash)

    indices = list(range(total))
    rng.shuffle(indices)
    return tuple(indices)


class RandomIndices:
    """Hands out slices of per-user, per-namespace stable permutations.

    Cached permutations are immutable tuples, so concurrent page fetches for
    the same user can share them.
    """

    def __init__(self, window_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self.clock = clock

    def seed_for(self, user_id: str, seed_namespace: str) -> str:
        window = int(self.clock()) // self.window_seconds
        return f"{user_id}-{seed_namespace}-{window}"

    def get_indices(
        self,
        total: int,
        offset: Optional[int],
        limit: Optional[int],
        user_id: str,
        seed_namespace: str,
    ) -> list[int]:
        """Indices into a list of `total` items, shuffled, then sliced."""
        if total <= 0:
            return []
        permutation = _permutation(self.seed_for(user_id, seed_namespace), total)
        start = offset or 0
        end = start + limit if limit is not None else None
        return list(permutation[start:end])


def array_multi_get(items: Sequence[T], indices: Sequence[int]) -> list[T]:
    return [items[i] for i in indices]
