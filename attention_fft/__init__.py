"""
Attention FFT - Convergence Speed Experiments
=============================================

Compares how fast two tiny networks converge:
- Attention: the product of two affine layers (gated)
- Regular: a sigmoid feed-forward network

under two weight initializations:
- Gaussian noise scaled by sqrt(2 / fan_in)
- FFT: real part of the DFT of complex white noise with zero DC term

on XOR and on auto-encoding the iris measurements, using momentum
gradient descent with global gradient-norm clipping.

Quick Start:
    >>> from attention_fft import build_model, Trainer
    >>> model = build_model('attention_fft', seed=1)
    >>> result = Trainer(model, model.variant.trainer_config()).train()
    >>> print(result.iterations, result.converged)

    >>> # Full experiment
    >>> from attention_fft import ExperimentHarness, ExperimentConfig
    >>> harness = ExperimentHarness(ExperimentConfig(trials=16))
    >>> harness.print_summary(harness.run())
"""

import torch

from attention_fft.autodiff import (
    ParameterSet,
    Node,
    mul,
    add,
    hadamard,
    sigmoid,
    quadratic,
    sum_all,
    avg,
    gradient,
)
from attention_fft.spectral import (
    make_weights_fft,
    make_weights_gaussian,
    fan_in_scale,
    initialize,
)
from attention_fft.statistics import Statistics
from attention_fft.trainer import (
    NormScope,
    RunState,
    TrainerConfig,
    MomentumState,
    TrainingTrace,
    TrainingResult,
    Trainer,
)
from attention_fft.models import (
    Topology,
    Task,
    VariantConfig,
    VARIANTS,
    Model,
    build_model,
    get_variant,
)
from attention_fft.errors import (
    ExperimentError,
    FatalLoadError,
    FatalArtifactError,
)
from attention_fft.harness import (
    ExperimentConfig,
    ExperimentHarness,
    run_variant,
)

__version__ = '0.1.0'
__license__ = 'MIT'

__all__ = [
    # Graph
    'ParameterSet',
    'Node',
    'mul',
    'add',
    'hadamard',
    'sigmoid',
    'quadratic',
    'sum_all',
    'avg',
    'gradient',
    # Initialization
    'make_weights_fft',
    'make_weights_gaussian',
    'fan_in_scale',
    'initialize',
    # Training
    'Statistics',
    'NormScope',
    'RunState',
    'TrainerConfig',
    'MomentumState',
    'TrainingTrace',
    'TrainingResult',
    'Trainer',
    # Models
    'Topology',
    'Task',
    'VariantConfig',
    'VARIANTS',
    'Model',
    'build_model',
    'get_variant',
    # Errors
    'ExperimentError',
    'FatalLoadError',
    'FatalArtifactError',
    # Experiment
    'ExperimentConfig',
    'ExperimentHarness',
    'run_variant',
    # Metadata
    '__version__',
    '__license__',
]


def get_variant_info(name: str = 'attention') -> dict:
    """
    Get information about a variant.

    Args:
        name: Variant key from VARIANTS

    Returns:
        Dictionary with variant information
    """
    variant = get_variant(name)
    model = build_model(variant, seed=0, measures=_placeholder_measures(variant))

    return {
        'name': variant.name,
        'label': variant.label,
        'topology': variant.topology.value,
        'task': variant.task.value,
        'fft': variant.fft,
        'threshold': variant.threshold,
        'artifact': variant.artifact,
        'parameters': {
            key: model.learned.shapes[key] for key in model.learned.names()
        },
        'num_params': sum(p.numel() for p in model.learned),
    }


def _placeholder_measures(variant: VariantConfig):
    # Shapes only; avoids loading the dataset
    if variant.task != Task.IRIS:
        return None
    return torch.zeros(1, 4, dtype=torch.float64)


def list_available_variants():
    """List all experiment variants."""
    print("\n" + "="*80)
    print("ATTENTION FFT - Available Variants")
    print("="*80)

    for name in VARIANTS.keys():
        info = get_variant_info(name)
        print(f"  {name:20s} | {info['label']:20s} | "
              f"{info['num_params']:3d} params | "
              f"threshold {info['threshold']:g}")

    print("="*80 + "\n")

# Add to __all__
__all__.extend(['get_variant_info', 'list_available_variants'])
