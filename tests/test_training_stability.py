"""
Training Stability Test - momentum descent with gradient clipping
=================================================================

Verifies the trainer's update rule and stopping behavior.
Tests:
- First-iteration update against a hand-computed gradient
- Momentum accumulation
- Clipped gradient norm never exceeds 1
- Iteration count bounds and run states
- XOR convergence (spectral) and plateau (Gaussian), aggregated iris statistics
"""

import sys
import os
import math

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import torch

from attention_fft.datasets import load_iris, load_xor
from attention_fft.harness import ExperimentConfig, ExperimentHarness
from attention_fft.models import build_model, get_variant
from attention_fft.trainer import (
    MomentumState, NormScope, RunState, Trainer, TrainerConfig
)


def snapshot(model) -> dict:
    return {name: p.detach().clone() for name, p in model.learned.items()}


def attention_xor_gradients(p: dict):
    """Closed-form gradients of sum((la * lb - y)^2) for the attention/XOR graph"""
    x, y = load_xor()
    la = x @ p['aw'].T + p['ab']
    lb = x @ p['bw'].T + p['bb']
    r = 2 * (la * lb - y)

    grads = {
        'aw': (r * lb).T @ x,
        'bw': (r * la).T @ x,
        'ab': (r * lb).sum().reshape(1, 1),
        'bb': (r * la).sum().reshape(1, 1),
    }
    cost = ((la * lb - y) ** 2).sum().item()
    return grads, cost


def test_first_iteration_without_momentum():
    """alpha = 0: w1 = w0 - eta * grad * scale"""
    for seed in [1, 2, 3]:
        model = build_model('attention', seed=seed)
        before = snapshot(model)
        grads, cost = attention_xor_gradients(before)

        norm = math.sqrt(sum((g * g).sum().item() for g in grads.values()))
        scale = 1.0 if norm <= 1 else 1.0 / norm

        config = TrainerConfig(alpha=0.0, eta=0.3, max_iterations=1, threshold=1e-6)
        result = Trainer(model, config).train()

        assert result.trace.points[0][0] == 0
        assert result.trace.points[0][1] == pytest.approx(cost)
        for name, value in before.items():
            expected = value - 0.3 * grads[name] * scale
            assert torch.allclose(model.learned[name].detach(), expected, rtol=0, atol=1e-12)


def test_momentum_accumulates():
    """v2 = alpha * v1 - eta * grad2 * scale2"""
    model = build_model('regular', seed=5)
    trainer = Trainer(model, TrainerConfig(alpha=0.3, eta=0.3))
    momentum = MomentumState(model.learned)

    w0 = snapshot(model)
    trainer.step(momentum)
    w1 = snapshot(model)
    v1 = {name: w1[name] - w0[name] for name in w0}
    for name, velocity in zip(model.learned.names(), momentum.buffers):
        assert torch.allclose(velocity, v1[name], rtol=0, atol=1e-12)

    trainer.step(momentum)
    w2 = snapshot(model)
    scale = trainer.clip_scale(model.learned.grad_norm())
    for name, param in model.learned.items():
        expected = 0.3 * v1[name] - 0.3 * param.grad * scale
        assert torch.allclose(w2[name] - w1[name], expected, rtol=0, atol=1e-12)


def test_momentum_buffers_align_with_declaration_order():
    model = build_model('iris_attention', seed=1, measures=load_iris())
    momentum = MomentumState(model.learned)

    assert len(momentum) == len(model.learned)
    for velocity, param in zip(momentum.buffers, model.learned):
        assert velocity.shape == param.shape
        assert torch.count_nonzero(velocity).item() == 0


@pytest.mark.parametrize('name,scope', [
    ('attention', NormScope.ALL),
    ('regular_fft', NormScope.ALL),
    ('iris_attention', NormScope.ALL),
    ('attention_fft', NormScope.SKIP_FIRST),
    ('iris_regular', NormScope.SKIP_FIRST),
])
def test_clipped_norm_never_exceeds_one(name, scope):
    model = build_model(name, seed=1)
    config = model.variant.trainer_config(norm_scope=scope, max_iterations=200)
    result = Trainer(model, config).train()

    assert len(result.grad_norms) == len(result.trace)
    assert all(norm <= 1.0 + 1e-12 for norm in result.grad_norms)


def test_clip_scale():
    trainer = Trainer(build_model('attention', seed=1), TrainerConfig())

    assert trainer.clip_scale(0.5) == 1.0
    assert trainer.clip_scale(1.0) == 1.0
    assert trainer.clip_scale(4.0) == 0.25


def test_skip_first_scope_ignores_first_gradient():
    """With SKIP_FIRST a huge first gradient does not shrink the update"""
    model = build_model('attention', seed=1)
    trainer = Trainer(model, TrainerConfig(norm_scope=NormScope.SKIP_FIRST))
    assert trainer._scope_skip() == 1

    model.learned.zero()
    model.learned['aw'].grad.fill_(100.0)
    assert model.learned.grad_norm(skip=trainer._scope_skip()) == 0.0


def test_iteration_cap():
    """A threshold that is never met runs exactly max_iterations"""
    model = build_model('regular', seed=1)
    config = TrainerConfig(max_iterations=5, threshold=0.0)
    result = Trainer(model, config).train()

    assert result.iterations == 5
    assert result.state == RunState.ITERATION_CAP_REACHED
    assert not result.converged
    assert [i for i, _ in result.trace] == [0, 1, 2, 3, 4]


def test_immediate_convergence():
    """The returned count is the first iteration whose cost is below threshold"""
    model = build_model('regular', seed=1)
    config = TrainerConfig(threshold=float('inf'))
    result = Trainer(model, config).train()

    assert result.iterations == 0
    assert result.state == RunState.CONVERGED
    assert len(result.trace) == 1


def test_converged_count_is_first_iteration_below_threshold():
    model = build_model('iris_regular', seed=3)
    result = Trainer(model, model.variant.trainer_config()).train()

    assert 0 <= result.iterations <= 1024
    costs = result.trace.costs
    if result.converged:
        assert costs[-1] < 5.0
        assert all(cost >= 5.0 for cost in costs[:-1])
        assert result.iterations == len(costs) - 1
    else:
        assert result.iterations == 1024
        assert len(costs) == 1024


def test_nan_cost_never_converges():
    """Divergence is not detected; a NaN cost runs to the cap"""
    model = build_model('attention', seed=1)
    with torch.no_grad():
        model.learned['ab'].fill_(float('nan'))

    result = Trainer(model, TrainerConfig(max_iterations=8)).train()

    assert result.iterations == 8
    assert result.state == RunState.ITERATION_CAP_REACHED
    assert math.isnan(result.final_cost)


def test_verbose_trace(capsys):
    model = build_model('attention', seed=1)
    Trainer(model, TrainerConfig(max_iterations=3, threshold=0.0, verbose=True)).train()

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 3
    assert lines[0].startswith('0 ')
    assert lines[2].startswith('2 ')


def test_attention_fft_learns_xor():
    """Spectral attention reaches 1e-6 on XOR from seed 1; outputs match the table"""
    model = build_model('attention_fft', seed=1)
    result = Trainer(model, get_variant('attention_fft').trainer_config()).train()

    assert result.converged
    assert result.iterations < 1024
    assert result.final_cost < 1e-6
    for got, want in zip(model.output.value(), [0, 1, 1, 0]):
        assert abs(got - want) < 0.05


def test_gaussian_attention_stalls_on_xor():
    """Gaussian attention starts with zero biases and plateaus above 1e-6"""
    model = build_model('attention', seed=1)
    result = Trainer(model, get_variant('attention').trainer_config()).train()

    assert result.state == RunState.ITERATION_CAP_REACHED
    assert result.iterations == 1024
    assert result.final_cost < result.trace.costs[0]


def test_iris_statistics_over_trials():
    """128 trials aggregate to a finite positive mean and non-negative stddev"""
    harness = ExperimentHarness(ExperimentConfig(
        trials=128, variants=['iris_regular'], show_progress=False, make_plots=False
    ))
    stats = harness.run_trials(harness.variants[0])

    assert stats.count == 128
    assert math.isfinite(stats.mean())
    assert stats.mean() > 0
    assert stats.stddev() >= 0
