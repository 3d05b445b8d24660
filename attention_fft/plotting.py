"""Cost-curve scatter plots."""
from pathlib import Path
from typing import Iterable, Tuple, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .errors import FatalArtifactError


def plot_cost(
    points: Iterable[Tuple[int, float]],
    path: Union[str, Path],
    title: str = "epochs vs cost"
) -> Path:
    """
    Save a scatter plot of (iteration, cost) points as an 8x8 inch image.

    Raises:
        FatalArtifactError: the image could not be written
    """
    points = list(points)
    path = Path(path)

    fig, ax = plt.subplots(figsize=(8, 8))
    try:
        ax.scatter([x for x, _ in points], [y for _, y in points], s=4, marker="o")
        ax.set_title(title)
        ax.set_xlabel("epochs")
        ax.set_ylabel("cost")
        fig.savefig(path)
    except (OSError, ValueError) as err:
        raise FatalArtifactError(f"Could not save plot {path}: {err}") from err
    finally:
        plt.close(fig)

    return path
