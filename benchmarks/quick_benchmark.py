"""
Quick Benchmark: Attention vs Regular (Small Version)
=====================================================

Fewer trials and no plots, for a fast look at the trend.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Run the experiment with smaller settings
if __name__ == '__main__':
    from attention_fft.harness import ExperimentHarness, ExperimentConfig

    print("\n🚀 Running QUICK benchmark (16 trials per variant)...")

    harness = ExperimentHarness(ExperimentConfig(
        trials=16,        # Fewer trials
        make_plots=False  # No artifacts
    ))
    results = {}
    for variant in harness.variants:
        results[variant.name] = harness.run_trials(variant)

    harness.print_summary(results)
