# hairscan/tips.py
import random
from typing import List, Optional

HAIR_CARE_TIPS = (
    "Massage your scalp daily for 5-10 minutes to improve blood circulation",
    "Use a mild, sulfate-free shampoo to avoid stripping natural oils",
    "Avoid hot water showers as they can dry out your scalp",
    "Eat a protein-rich diet including eggs, nuts, and fish",
    "Trim hair every 6-8 weeks to prevent split ends",
)


class TipProvider:
    def __init__(self, rng: Optional[random.Random] = None):
        self._pool = HAIR_CARE_TIPS
        self._rng = rng or random.Random()

    @property
    def pool(self):
        return self._pool

    def sample(self, n: int = 3) -> List[str]:
        """Return ``n`` distinct tips in a random order."""
        if not 0 <= n <= len(self._pool):
            raise ValueError(f"Cannot sample {n} tips from a pool of {len(self._pool)}")
        return self._rng.sample(self._pool, n)
