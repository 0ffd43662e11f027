"""
Per-batch result aggregation.

The training and validation loops collect one ``{name: value}`` dict per
batch and report the per-key mean over the epoch.
"""

from collections import defaultdict
from typing import Dict, List


class ResultAccumulator:
    """
    Collects per-batch results and averages them per key.

    A key missing from some batches is averaged over the batches that
    reported it.
    """

    def __init__(self) -> None:
        self._values: Dict[str, List[float]] = defaultdict(list)
        self.batches = 0

    def append(self, result: Dict[str, float]) -> None:
        for key, value in result.items():
            self._values[key].append(float(value))
        self.batches += 1

    def mean(self) -> Dict[str, float]:
        return {key: sum(values) / len(values) for key, values in self._values.items()}

    def __len__(self) -> int:
        return self.batches
