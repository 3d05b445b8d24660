"""
Model variants
==============

Four fixed expression graphs, each available with Gaussian or spectral
(FFT) initialization:

- attention / XOR:   f = (aw.x + ab) * (bw.x + bb)
- regular / XOR:     f = sigmoid(bw.sigmoid(aw.x + ab) + bb)
- attention / iris:  f = cw.((aw.x + ab) * (bw.x + bb)) + cb   (auto-encoder)
- regular / iris:    f = bw.sigmoid(aw.x + ab) + bb            (auto-encoder)

Only the leading weight matrices are drawn at random; every other
parameter starts at zero.
"""
from typing import Callable, Dict, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

import torch

from .autodiff import (
    ParameterSet, Node, mul, add, hadamard, sigmoid, quadratic, sum_all, avg
)
from .datasets import load_xor, load_iris
from .spectral import initialize
from .trainer import NormScope, TrainerConfig


# ============================================================================
# CONFIGURATION
# ============================================================================

class Topology(Enum):
    """Network topologies"""
    ATTENTION = "attention"
    REGULAR = "regular"


class Task(Enum):
    """Training tasks"""
    XOR = "xor"    # sum-of-squares loss
    IRIS = "iris"  # mean per-sample reconstruction loss


# Stop once cost < threshold
THRESHOLDS = {
    Task.XOR: 1e-6,
    Task.IRIS: 5.0,
}


@dataclass
class VariantConfig:
    """One experiment variant: topology, task and initialization mode"""
    name: str
    label: str
    topology: Topology
    task: Task
    fft: bool = False
    threshold: Optional[float] = None
    norm_scope: NormScope = NormScope.ALL

    def __post_init__(self):
        if self.threshold is None:
            self.threshold = THRESHOLDS[self.task]

    @property
    def artifact(self) -> str:
        """File name of the cost plot"""
        return f"cost_{self.name}.png"

    def trainer_config(self, **overrides) -> TrainerConfig:
        """Trainer settings for this variant"""
        settings = dict(threshold=self.threshold, norm_scope=self.norm_scope)
        settings.update(overrides)
        return TrainerConfig(**settings)


# Predefined variants, in reporting order
VARIANTS: Dict[str, VariantConfig] = {
    'attention': VariantConfig(
        'attention', 'Attention', Topology.ATTENTION, Task.XOR
    ),
    'attention_fft': VariantConfig(
        'attention_fft', 'Attention FFT', Topology.ATTENTION, Task.XOR, fft=True
    ),
    'iris_attention': VariantConfig(
        'iris_attention', 'IRIS Attention', Topology.ATTENTION, Task.IRIS
    ),
    'iris_attention_fft': VariantConfig(
        'iris_attention_fft', 'IRIS Attention FFT', Topology.ATTENTION, Task.IRIS, fft=True
    ),
    'regular': VariantConfig(
        'regular', 'Regular', Topology.REGULAR, Task.XOR
    ),
    'regular_fft': VariantConfig(
        'regular_fft', 'Regular FFT', Topology.REGULAR, Task.XOR, fft=True
    ),
    'iris_regular': VariantConfig(
        'iris_regular', 'IRIS Regular', Topology.REGULAR, Task.IRIS
    ),
    'iris_regular_fft': VariantConfig(
        'iris_regular_fft', 'IRIS Regular FFT', Topology.REGULAR, Task.IRIS, fft=True
    ),
}


def get_variant(name: str) -> VariantConfig:
    if name not in VARIANTS:
        raise ValueError(f"Unknown variant: {name}. Choose from: {list(VARIANTS.keys())}")
    return VARIANTS[name]


# ============================================================================
# MODELS
# ============================================================================

@dataclass
class Model:
    """A built graph with its data and learned parameters"""
    variant: VariantConfig
    data: ParameterSet
    learned: ParameterSet
    cost: Node
    output: Node
    extras: Dict[str, Node] = field(default_factory=dict)


def _xor_data() -> ParameterSet:
    inputs, outputs = load_xor()
    others = ParameterSet(trainable=False)
    others.add('input', 2, 4)
    others.add('output', 1, 4)
    others.fill('input', inputs)
    others.fill('output', outputs)
    return others


def _iris_data(measures: Optional[torch.Tensor]) -> ParameterSet:
    if measures is None:
        measures = load_iris()
    others = ParameterSet(trainable=False)
    others.add('data', measures.shape[1], measures.shape[0])
    others.fill('data', measures)
    return others


def build_attention_xor(variant: VariantConfig, rng: torch.Generator,
                        measures: Optional[torch.Tensor] = None) -> Model:
    others = _xor_data()

    learned = ParameterSet()
    learned.add('aw', 2, 1)
    learned.add('bw', 2, 1)
    learned.add('ab', 1, 1)
    learned.add('bb', 1, 1)
    initialize(learned, rng, 2, fft=variant.fft)

    la = add(mul(learned.get('aw'), others.get('input')), learned.get('ab'))
    lb = add(mul(learned.get('bw'), others.get('input')), learned.get('bb'))
    f = hadamard(la, lb)
    cost = sum_all(quadratic(f, others.get('output')))

    return Model(variant, others, learned, cost, f, {'la': la, 'lb': lb})


def build_regular_xor(variant: VariantConfig, rng: torch.Generator,
                      measures: Optional[torch.Tensor] = None) -> Model:
    others = _xor_data()

    learned = ParameterSet()
    learned.add('aw', 2, 2)
    learned.add('bw', 2, 1)
    learned.add('ab', 2, 1)
    learned.add('bb', 1, 1)
    initialize(learned, rng, 2, fft=variant.fft)

    l1 = sigmoid(add(mul(learned.get('aw'), others.get('input')), learned.get('ab')))
    l2 = sigmoid(add(mul(learned.get('bw'), l1), learned.get('bb')))
    cost = sum_all(quadratic(l2, others.get('output')))

    return Model(variant, others, learned, cost, l2, {'l1': l1})


def build_attention_iris(variant: VariantConfig, rng: torch.Generator,
                         measures: Optional[torch.Tensor] = None) -> Model:
    others = _iris_data(measures)

    learned = ParameterSet()
    learned.add('aw', 4, 8)
    learned.add('bw', 4, 8)
    learned.add('cw', 8, 4)
    learned.add('ab', 8, 1)
    learned.add('bb', 8, 1)
    learned.add('cb', 4, 1)
    initialize(learned, rng, 3, fft=variant.fft, spectral_scale=True)

    la = add(mul(learned.get('aw'), others.get('data')), learned.get('ab'))
    lb = add(mul(learned.get('bw'), others.get('data')), learned.get('bb'))
    lc = hadamard(la, lb)
    f = add(mul(learned.get('cw'), lc), learned.get('cb'))
    cost = avg(quadratic(f, others.get('data')))

    return Model(variant, others, learned, cost, f, {'la': la, 'lb': lb, 'lc': lc})


def build_regular_iris(variant: VariantConfig, rng: torch.Generator,
                       measures: Optional[torch.Tensor] = None) -> Model:
    others = _iris_data(measures)

    learned = ParameterSet()
    learned.add('aw', 4, 4)
    learned.add('bw', 4, 4)
    learned.add('ab', 4, 1)
    learned.add('bb', 4, 1)
    initialize(learned, rng, 2, fft=variant.fft, spectral_scale=True)

    l1 = sigmoid(add(mul(learned.get('aw'), others.get('data')), learned.get('ab')))
    l2 = add(mul(learned.get('bw'), l1), learned.get('bb'))
    cost = avg(quadratic(l2, others.get('data')))

    return Model(variant, others, learned, cost, l2, {'l1': l1})


BUILDERS: Dict[Tuple[Topology, Task], Callable[..., Model]] = {
    (Topology.ATTENTION, Task.XOR): build_attention_xor,
    (Topology.REGULAR, Task.XOR): build_regular_xor,
    (Topology.ATTENTION, Task.IRIS): build_attention_iris,
    (Topology.REGULAR, Task.IRIS): build_regular_iris,
}


def build_model(
    variant: Union[str, VariantConfig],
    seed: Optional[int] = None,
    rng: Optional[torch.Generator] = None,
    measures: Optional[torch.Tensor] = None
) -> Model:
    """
    Build a variant's graph with freshly initialized parameters.

    Args:
        variant: Variant key from VARIANTS or a VariantConfig
        seed: Seed for a new generator (ignored when `rng` is given)
        rng: Random source to draw initial weights from
        measures: Preloaded iris measurements, (samples, 4); loaded when omitted
    Returns:
        Model instance
    """
    if isinstance(variant, str):
        variant = get_variant(variant)
    if rng is None:
        if seed is None:
            raise ValueError("build_model needs either a seed or a generator")
        rng = torch.Generator().manual_seed(seed)

    builder = BUILDERS[(variant.topology, variant.task)]
    return builder(variant, rng, measures)
