"""Streaming statistics over scalar samples."""
import math


class Statistics:
    """
    Running count, sum and sum of squares of a sample stream.

    The standard deviation is the population form (divides by the count,
    not count - 1). Both `mean` and `stddev` need at least one sample.
    """

    def __init__(self):
        self.sum = 0.0
        self.sum_squared = 0.0
        self.count = 0

    def add(self, value: float):
        """Add a sample"""
        self.sum += value
        self.sum_squared += value * value
        self.count += 1

    def mean(self) -> float:
        return self.sum / self.count

    def stddev(self) -> float:
        count = float(self.count)
        return math.sqrt((self.sum_squared - self.sum * self.sum / count) / count)

    def __len__(self):
        return self.count

    def __str__(self):
        return f"{self.mean():f} +- {self.stddev():f}"

    def __repr__(self):
        return f"Statistics(count={self.count}, sum={self.sum}, sum_squared={self.sum_squared})"
