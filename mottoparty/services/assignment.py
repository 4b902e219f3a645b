from __future__ import annotations

from typing import Callable, NamedTuple, Sequence

from .shuffle import shuffle as fisher_yates


class Submission(NamedTuple):
    submitter: str
    text: str


Shuffler = Callable[[Sequence[int]], list]


def assign_mottos(
    participants: Sequence[str],
    mottos: Sequence[Submission],
    shuffle: Shuffler = fisher_yates,
) -> dict[str, str]:
    """
    Map every participant to one motto text.

    Participants are served in the order given. For each one:
      1. candidates are the mottos they did not write, or every motto when
         they wrote all of them;
      2. the first candidate still in the shuffled available pool is taken,
         preferring a text nobody has received yet;
      3. when the pool holds no candidate, it is refilled with a fresh shuffle
         of all mottos, so duplicates appear only under scarcity.

    Both inputs must be non-empty; callers check that.
    """
    indices = list(range(len(mottos)))
    available = list(shuffle(indices))
    used_texts: set[str] = set()
    result: dict[str, str] = {}

    for p in participants:
        candidates = {i for i in indices if mottos[i].submitter != p} or set(indices)

        eligible = [i for i in available if i in candidates]
        if not eligible:
            available = list(shuffle(indices))
            eligible = [i for i in available if i in candidates]

        fresh = [i for i in eligible if mottos[i].text not in used_texts]
        chosen = (fresh or eligible)[0]

        available.remove(chosen)
        used_texts.add(mottos[chosen].text)
        result[p] = mottos[chosen].text

    return result
