from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    ``rng`` defaults to the module-level ``random`` generator. This is party-game
    fairness, not a security boundary, so a non-cryptographic source is fine.
    """
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result
