"""Weight initializers: Gaussian noise and DFT-derived spectral noise.

Both draw from an explicit `torch.Generator`, so a run is reproducible
from its seed alone. Weights are consumed in parameter declaration order.
"""
from typing import Optional

import math
import torch

from .autodiff import ParameterSet


def make_weights_fft(rng: torch.Generator, n: int) -> torch.Tensor:
    """
    Pseudo-random weights from the spectrum of complex white noise.

    Builds `n` complex samples with the first one fixed at exactly zero
    (no DC term) and the others drawn with independent standard normal
    real and imaginary parts, applies a forward DFT and keeps the real
    parts. The outputs therefore sum to zero.

    Args:
        rng: Random source; consumes 2 * (n - 1) normal draws
        n: Number of weights
    Returns:
        float64 tensor of length n
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if n == 0:
        return torch.zeros(0, dtype=torch.float64)

    noise = torch.randn(n - 1, 2, generator=rng, dtype=torch.float64)
    y = torch.zeros(n, dtype=torch.complex128)
    y[1:] = torch.complex(noise[:, 0], noise[:, 1])

    return torch.fft.fft(y).real.contiguous()


def make_weights_gaussian(rng: torch.Generator, n: int) -> torch.Tensor:
    """n standard normal draws (float64)"""
    return torch.randn(n, generator=rng, dtype=torch.float64)


def fan_in_scale(width: int, n: Optional[int] = None) -> float:
    """
    `sqrt(2 / fan_in)`, optionally damped by `sqrt(1 / n)`.

    The damped form is used for spectral weights on the measurement
    task, where the DFT output grows with the number of weights.
    """
    factor = math.sqrt(2.0 / width)
    if n is not None:
        factor *= math.sqrt(1.0 / n)
    return factor


def initialize(
    params: ParameterSet,
    rng: torch.Generator,
    count: int,
    fft: bool = False,
    spectral_scale: bool = False
):
    """
    Fill the first `count` entries of a parameter set; leave the rest zero.

    Args:
        params: Learned parameters, filled in declaration order
        rng: Random source shared by every entry
        count: Number of leading entries to initialize
        fft: Spectral weights instead of Gaussian ones
        spectral_scale: Damp spectral weights by sqrt(1 / n)
    """
    names = params.names()
    if not 0 <= count <= len(names):
        raise ValueError(f"count must be in [0, {len(names)}], got {count}")

    for name in names[:count]:
        width, height = params.shapes[name]
        n = width * height

        if fft:
            factor = fan_in_scale(width, n if spectral_scale else None)
            weights = make_weights_fft(rng, n)
        else:
            factor = fan_in_scale(width)
            weights = make_weights_gaussian(rng, n)

        params.fill(name, weights * factor)
