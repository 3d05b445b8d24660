"""
Momentum gradient descent with global gradient-norm clipping
============================================================

The trainer runs a built model until its cost drops below the task
threshold or the iteration cap is reached. The number of iterations used
is the convergence speed reported by the experiment.

Per iteration:
    1. zero every gradient buffer
    2. evaluate the cost and backpropagate
    3. norm = ||grad|| over the configured scope
    4. scale = 1 if norm <= clip_norm else clip_norm / norm
    5. v = alpha * v - eta * grad * scale;  w += v   (every parameter)
"""
from typing import List, Tuple
from dataclasses import dataclass, field
from enum import Enum

import torch

from .autodiff import gradient


# ============================================================================
# CONFIGURATION
# ============================================================================

class NormScope(Enum):
    """Which parameters contribute to the clipping norm"""
    ALL = "all"
    SKIP_FIRST = "skip_first"  # every parameter but the first declared one


class RunState(Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    ITERATION_CAP_REACHED = "iteration_cap_reached"


@dataclass
class TrainerConfig:
    """Trainer configuration"""
    alpha: float = 0.3           # momentum
    eta: float = 0.3             # learning rate
    max_iterations: int = 1024
    threshold: float = 1e-6      # stop once cost < threshold
    norm_scope: NormScope = NormScope.ALL
    clip_norm: float = 1.0
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration"""
        if isinstance(self.norm_scope, str):
            self.norm_scope = NormScope(self.norm_scope)
        if self.alpha < 0:
            raise ValueError(f"alpha must be non-negative, got {self.alpha}")
        if self.eta <= 0:
            raise ValueError(f"eta must be positive, got {self.eta}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {self.max_iterations}")
        if self.clip_norm <= 0:
            raise ValueError(f"clip_norm must be positive, got {self.clip_norm}")


# ============================================================================
# STATE
# ============================================================================

class MomentumState:
    """One zeroed velocity buffer per parameter, in declaration order"""

    def __init__(self, params):
        self.buffers = [torch.zeros_like(p, requires_grad=False) for p in params]

    def __len__(self):
        return len(self.buffers)


@dataclass
class TrainingTrace:
    """(iteration, cost) per iteration"""
    points: List[Tuple[int, float]] = field(default_factory=list)

    def append(self, iteration: int, cost: float):
        self.points.append((iteration, cost))

    @property
    def costs(self) -> List[float]:
        return [cost for _, cost in self.points]

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


@dataclass
class TrainingResult:
    """Outcome of one training run"""
    iterations: int
    state: RunState
    final_cost: float
    trace: TrainingTrace
    grad_norms: List[float] = field(default_factory=list)  # after clipping

    @property
    def converged(self) -> bool:
        return self.state == RunState.CONVERGED


# ============================================================================
# TRAINER
# ============================================================================

class Trainer:
    """
    Trains a built model (see `models.build_model`) in place.

    Args:
        model: Object with a `cost` node and a `learned` ParameterSet
        config: TrainerConfig
    """

    def __init__(self, model, config: TrainerConfig):
        self.model = model
        self.config = config
        self.params = model.learned
        self.state = RunState.RUNNING

    def _scope_skip(self) -> int:
        return 1 if self.config.norm_scope == NormScope.SKIP_FIRST else 0

    def clip_scale(self, norm: float) -> float:
        """Scale applied to the whole update for a given gradient norm"""
        if norm <= self.config.clip_norm:
            return 1.0
        return self.config.clip_norm / norm

    @torch.no_grad()
    def apply_update(self, momentum: MomentumState, scale: float):
        """v = alpha * v - eta * grad * scale; value += v"""
        alpha, eta = self.config.alpha, self.config.eta
        for param, velocity in zip(self.params, momentum.buffers):
            velocity.mul_(alpha).sub_(param.grad * (eta * scale))
            param.add_(velocity)

    def step(self, momentum: MomentumState) -> Tuple[float, float]:
        """
        One iteration.

        Returns:
            cost: Cost before the update
            clipped_norm: Gradient norm after clipping
        """
        self.params.zero()
        cost = gradient(self.model.cost)

        norm = self.params.grad_norm(skip=self._scope_skip())
        scale = self.clip_scale(norm)
        self.apply_update(momentum, scale)

        return cost, norm * scale

    def train(self) -> TrainingResult:
        """Run until converged or the iteration cap is reached"""
        config = self.config
        momentum = MomentumState(self.params)
        trace = TrainingTrace()
        grad_norms = []

        self.state = RunState.RUNNING
        cost = float('nan')
        i = 0
        while i < config.max_iterations:
            cost, clipped_norm = self.step(momentum)
            trace.append(i, cost)
            grad_norms.append(clipped_norm)

            if config.verbose:
                print(i, cost)

            if cost < config.threshold:
                self.state = RunState.CONVERGED
                break
            i += 1

        if self.state == RunState.RUNNING:
            self.state = RunState.ITERATION_CAP_REACHED

        return TrainingResult(
            iterations=i,
            state=self.state,
            final_cost=cost,
            trace=trace,
            grad_norms=grad_norms
        )
