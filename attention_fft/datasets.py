"""
Datasets
========

- XOR: the fixed 4-sample truth table (2 inputs, 1 target)
- Iris: Fisher's 150 flower measurements (4 features), via scikit-learn

Arrays are sample-major: one row per sample.
"""
from typing import Tuple

import numpy as np
import torch
from sklearn.datasets import load_iris as sklearn_load_iris

from .errors import FatalLoadError


XOR_INPUTS = [
    0, 0,
    0, 1,
    1, 0,
    1, 1,
]
XOR_OUTPUTS = [0, 1, 1, 0]


def load_xor() -> Tuple[torch.Tensor, torch.Tensor]:
    """
    XOR truth table.

    Returns:
        inputs: (4, 2) float64
        outputs: (4, 1) float64
    """
    inputs = torch.tensor(XOR_INPUTS, dtype=torch.float64).reshape(4, 2)
    outputs = torch.tensor(XOR_OUTPUTS, dtype=torch.float64).reshape(4, 1)
    return inputs, outputs


def load_iris() -> torch.Tensor:
    """
    Iris measurements (sepal length/width, petal length/width).

    Returns:
        (150, 4) float64 tensor

    Raises:
        FatalLoadError: the dataset is unavailable or malformed
    """
    try:
        measures = np.asarray(sklearn_load_iris().data, dtype=np.float64)
    except Exception as err:
        raise FatalLoadError(f"Could not load the iris dataset: {err}") from err

    if measures.ndim != 2 or measures.shape[1] != 4 or len(measures) == 0:
        raise FatalLoadError(f"Unexpected iris data shape: {measures.shape}")

    return torch.from_numpy(measures)
