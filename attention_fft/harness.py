"""
EXPERIMENT HARNESS - Attention vs Regular, Gaussian vs FFT initialization
=========================================================================

For every variant:
- one verbose run (seed 1): per-iteration cost, cost plot, trained outputs
- `trials` silent runs (seeds 2, 3, ...): iteration counts into Statistics

then one summary line per variant: "<label>: <mean> +- <stddev>".

Usage:
    # Full experiment (8 variants x 128 trials)
    attention-fft

    # Fewer trials, plots elsewhere
    attention-fft --trials 16 --output-dir plots
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from pathlib import Path

import sys
import argparse
import torch
from tqdm import tqdm

from .datasets import load_iris
from .errors import ExperimentError
from .models import VARIANTS, Task, VariantConfig, build_model, get_variant
from .plotting import plot_cost
from .statistics import Statistics
from .trainer import Trainer, TrainingResult


# ============================================================================
# CONFIGURATION
# ============================================================================

# Verbose runs pair each topology with its FFT twin before moving to iris
VERBOSE_ORDER = [
    'attention', 'regular', 'attention_fft', 'regular_fft',
    'iris_attention', 'iris_attention_fft', 'iris_regular', 'iris_regular_fft',
]


@dataclass
class ExperimentConfig:
    """Experiment configuration"""
    trials: int = 128
    first_seed: int = 2
    verbose_seed: int = 1
    output_dir: str = '.'
    variants: List[str] = field(default_factory=lambda: list(VARIANTS.keys()))
    show_progress: bool = True
    make_plots: bool = True

    def __post_init__(self):
        """Validate configuration"""
        if self.trials < 1:
            raise ValueError(f"trials must be at least 1, got {self.trials}")
        for name in self.variants:
            get_variant(name)
        if self.make_plots:
            Path(self.output_dir).mkdir(parents=True, exist_ok=True)


# ============================================================================
# RUNS
# ============================================================================

def run_variant(
    variant: VariantConfig,
    seed: int,
    verbose: bool = False,
    measures: Optional[torch.Tensor] = None,
    **trainer_overrides
):
    """
    Build and train one variant from a seed.

    Returns:
        (model, TrainingResult)
    """
    model = build_model(variant, seed=seed, measures=measures)
    config = variant.trainer_config(verbose=verbose, **trainer_overrides)
    result = Trainer(model, config).train()
    return model, result


class ExperimentHarness:
    """
    Runs the convergence-speed experiment.

    Usage:
        harness = ExperimentHarness(ExperimentConfig(trials=16))
        results = harness.run()
        harness.print_summary(results)
    """

    def __init__(self, config: Optional[ExperimentConfig] = None):
        self.config = config or ExperimentConfig()
        self.variants = [get_variant(name) for name in self.config.variants]
        self._measures: Optional[torch.Tensor] = None

    def measures(self, variant: VariantConfig) -> Optional[torch.Tensor]:
        """Iris data for variants that need it, loaded once"""
        if variant.task != Task.IRIS:
            return None
        if self._measures is None:
            self._measures = load_iris()
        return self._measures

    def run_verbose(self, variant: VariantConfig) -> TrainingResult:
        """Diagnostic run: cost trace, plot and trained outputs"""
        print(f"\n{'='*80}")
        print(f"📊 {variant.label} (seed {self.config.verbose_seed})")
        print(f"{'='*80}")

        model, result = run_variant(
            variant, self.config.verbose_seed, verbose=True,
            measures=self.measures(variant)
        )

        print(result.iterations, model.output.value())

        if self.config.make_plots:
            path = Path(self.config.output_dir) / variant.artifact
            plot_cost(result.trace, path)
            print(f"💾 Plot saved: {path}")

        return result

    def run_trials(self, variant: VariantConfig) -> Statistics:
        """Silent runs over consecutive seeds"""
        stats = Statistics()
        first = self.config.first_seed
        seeds = tqdm(
            range(first, first + self.config.trials),
            desc=variant.label,
            disable=not self.config.show_progress
        )
        for seed in seeds:
            _, result = run_variant(variant, seed, measures=self.measures(variant))
            stats.add(float(result.iterations))
            seeds.set_postfix({'mean': f'{stats.mean():.1f}'})
        return stats

    def verbose_variants(self) -> List[VariantConfig]:
        """Selected variants in verbose-run order"""
        return sorted(self.variants, key=lambda v: VERBOSE_ORDER.index(v.name))

    def run(self) -> Dict[str, Statistics]:
        """Verbose run per variant, then the trials; returns Statistics by variant key"""
        for variant in self.verbose_variants():
            self.run_verbose(variant)

        results = {}
        for variant in self.variants:
            results[variant.name] = self.run_trials(variant)
        return results

    def summary(self, results: Dict[str, Statistics]) -> List[str]:
        return [f"{VARIANTS[name].label}: {stats}" for name, stats in results.items()]

    def print_summary(self, results: Dict[str, Statistics]):
        print(f"\n{'='*80}")
        print(f"CONVERGENCE SPEED ({self.config.trials} trials, iterations to threshold)")
        print(f"{'='*80}")
        for line in self.summary(results):
            print(line)


# ============================================================================
# MAIN
# ============================================================================

def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description='Compare convergence speed of attention and regular networks')
    parser.add_argument('--trials', type=int, default=128)
    parser.add_argument('--output-dir', type=str, default='.')
    parser.add_argument('--variants', type=str, nargs='+', default=list(VARIANTS.keys()),
                        choices=list(VARIANTS.keys()))
    parser.add_argument('--no-progress', action='store_true')
    args = parser.parse_args(argv)

    try:
        config = ExperimentConfig(
            trials=args.trials,
            output_dir=args.output_dir,
            variants=args.variants,
            show_progress=not args.no_progress
        )
        harness = ExperimentHarness(config)
        results = harness.run()
    except ExperimentError as err:
        print(f"❌ {err}")
        sys.exit(1)

    harness.print_summary(results)
    return results


if __name__ == '__main__':
    main()
