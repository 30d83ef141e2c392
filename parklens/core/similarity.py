"""Vector similarity helpers."""

import math


def distance_to_score(distance: float) -> float:
    """Map an L2 distance to a similarity score in (0, 1].

    ``exp(-d)``: distance 0 scores 1 and the score decays monotonically,
    underflowing to 0 for very large distances.
    """
    return math.exp(-distance)
