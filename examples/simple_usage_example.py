"""
Simple Usage Example: Convergence Experiments
=============================================

This example demonstrates the attention_fft API piece by piece:
initializers, building a variant, training it, and aggregating runs.

Installation:
    pip install -e .
"""

import torch
from attention_fft import (
    make_weights_fft,
    build_model,
    Trainer,
    TrainerConfig,
    NormScope,
    Statistics,
    list_available_variants,
)


def example_1_spectral_weights():
    """
    Example 1: Spectral weights
    Real part of the DFT of complex noise with no DC term
    """
    print("\n" + "="*80)
    print("Example 1: Spectral Weights")
    print("="*80)

    rng = torch.Generator().manual_seed(1)
    weights = make_weights_fft(rng, 8)

    print(f"✅ Weights: {[round(w, 3) for w in weights.tolist()]}")
    print(f"   Sum (always ~0): {weights.sum().item():.2e}")


def example_2_train_variant():
    """
    Example 2: Train one variant
    Attention network on XOR with FFT initialization
    """
    print("\n" + "="*80)
    print("Example 2: Training a Variant")
    print("="*80)

    model = build_model('attention_fft', seed=1)
    result = Trainer(model, model.variant.trainer_config()).train()

    print(f"✅ {model.variant.label}: {result.state.value} after {result.iterations} iterations")
    print(f"   Final cost: {result.final_cost:.2e}")
    print(f"   Outputs: {[round(v, 3) for v in model.output.value()]}")


def example_3_custom_trainer():
    """
    Example 3: Custom trainer settings
    Plain gradient descent, clipping norm that skips the first parameter
    """
    print("\n" + "="*80)
    print("Example 3: Custom Trainer Configuration")
    print("="*80)

    model = build_model('regular', seed=1)
    config = TrainerConfig(
        alpha=0.0,
        eta=0.3,
        max_iterations=256,
        threshold=1e-6,
        norm_scope=NormScope.SKIP_FIRST
    )
    result = Trainer(model, config).train()

    print(f"✅ {result.state.value} after {result.iterations} iterations")
    print(f"   Cost: {result.trace.costs[0]:.4f} -> {result.final_cost:.4f}")


def example_4_statistics():
    """
    Example 4: Aggregate several seeds
    """
    print("\n" + "="*80)
    print("Example 4: Aggregating Runs")
    print("="*80)

    for name in ['attention', 'attention_fft']:
        stats = Statistics()
        for seed in range(2, 10):
            model = build_model(name, seed=seed)
            stats.add(Trainer(model, model.variant.trainer_config()).train().iterations)
        print(f"✅ {model.variant.label}: {stats}")


def main():
    list_available_variants()
    example_1_spectral_weights()
    example_2_train_variant()
    example_3_custom_trainer()
    example_4_statistics()


if __name__ == '__main__':
    main()
