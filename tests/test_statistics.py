"""
Streaming statistics tests
"""

import sys
import os
import math

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from attention_fft.statistics import Statistics


def test_mean_and_population_stddev():
    """[1, 2, 3]: mean 2, population stddev sqrt(2/3)"""
    stats = Statistics()
    for value in [1, 2, 3]:
        stats.add(value)

    assert stats.count == 3
    assert stats.sum == 6
    assert stats.sum_squared == 14
    assert stats.mean() == 2.0
    assert stats.stddev() == pytest.approx(math.sqrt(2.0 / 3.0))
    assert stats.stddev() == pytest.approx(0.8165, abs=1e-4)


def test_constant_samples_have_zero_stddev():
    stats = Statistics()
    for _ in range(128):
        stats.add(1024.0)

    assert stats.mean() == 1024.0
    assert stats.stddev() == 0.0


def test_single_sample():
    stats = Statistics()
    stats.add(7.0)

    assert stats.mean() == 7.0
    assert stats.stddev() == 0.0
    assert len(stats) == 1


def test_string_format():
    """Summary form is '<mean> +- <stddev>'"""
    stats = Statistics()
    for value in [1, 2, 3]:
        stats.add(value)

    assert str(stats) == "2.000000 +- 0.816497"


def test_empty_statistics_are_undefined():
    stats = Statistics()

    with pytest.raises(ZeroDivisionError):
        stats.mean()
    with pytest.raises(ZeroDivisionError):
        stats.stddev()
