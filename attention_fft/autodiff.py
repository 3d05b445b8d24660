"""Parameter sets and lazily evaluated expression graphs over torch autograd.

A graph is declared once and evaluated many times: every call to
`gradient` re-runs the forward pass against the current parameter values
and backpropagates into the gradient buffers of every trainable
parameter the expression reaches.

Shapes follow the `F.linear` convention. A parameter declared as
`(width, height)` is a `height x width` matrix whose rows are contiguous
in its flat buffer, so `mul(w, x)` computes `x @ w.T` and a one-row bias
broadcasts over samples in `add`.

Example:
    >>> learned = ParameterSet()
    >>> learned.add('w', 2, 1)
    >>> data = ParameterSet(trainable=False)
    >>> data.add('x', 2, 4)
    >>> data.add('y', 1, 4)
    >>> cost = sum_all(quadratic(mul(learned.get('w'), data.get('x')), data.get('y')))
    >>> learned.zero()
    >>> total = gradient(cost)
"""
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import math
import torch
import torch.nn as nn
import torch.nn.functional as F


# ============================================================================
# PARAMETERS
# ============================================================================

class ParameterSet(nn.Module):
    """
    Ordered collection of named matrices.

    Declaration order is iteration order; it fixes the order in which
    weights are initialized, the order of the gradient norm and the
    alignment of momentum buffers.

    Args:
        trainable: If False the entries are plain data (no gradients)
        dtype: Element type of every entry
    """

    def __init__(self, trainable: bool = True, dtype: torch.dtype = torch.float64):
        super().__init__()
        self.trainable = trainable
        self.dtype = dtype
        self.weights = nn.ParameterDict()
        self.shapes = {}

    def add(self, name: str, width: int, height: int = 1) -> nn.Parameter:
        """
        Declare a zero-filled `height x width` entry.

        The gradient buffer of a trainable entry is allocated here, with
        the same shape as the value, and is only ever zeroed in place.
        """
        if name in self.weights:
            raise ValueError(f"Parameter already declared: {name}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid shape for {name}: ({width}, {height})")

        value = nn.Parameter(
            torch.zeros(height, width, dtype=self.dtype),
            requires_grad=self.trainable
        )
        if self.trainable:
            value.grad = torch.zeros_like(value)

        self.weights[name] = value
        self.shapes[name] = (width, height)
        return value

    def get(self, name: str) -> 'Node':
        """Expression node reading the named entry"""
        return Leaf(self, name)

    def fill(self, name: str, values: Sequence[float]):
        """Copy a flat, row-major sequence into the named entry"""
        param = self.weights[name]
        flat = torch.as_tensor(values, dtype=self.dtype).reshape(-1)
        if flat.numel() != param.numel():
            raise ValueError(
                f"{name} holds {param.numel()} values, got {flat.numel()}"
            )
        with torch.no_grad():
            param.view(-1).copy_(flat)

    def zero(self):
        """Zero every gradient buffer in place"""
        for param in self.weights.values():
            if param.grad is not None:
                param.grad.zero_()

    def grad_norm(self, skip: int = 0) -> float:
        """
        Euclidean norm of the gradient buffers.

        Args:
            skip: Number of leading entries (in declaration order) left out
        """
        total = 0.0
        for param in list(self.weights.values())[skip:]:
            if param.grad is not None:
                total += (param.grad * param.grad).sum().item()
        return math.sqrt(total)

    def names(self) -> List[str]:
        return list(self.weights.keys())

    def items(self) -> Iterator[Tuple[str, nn.Parameter]]:
        return iter(self.weights.items())

    def __getitem__(self, name: str) -> nn.Parameter:
        return self.weights[name]

    def __contains__(self, name: str) -> bool:
        return name in self.weights

    def __iter__(self) -> Iterator[nn.Parameter]:
        return iter(self.weights.values())

    def __len__(self) -> int:
        return len(self.weights)


# ============================================================================
# EXPRESSION GRAPH
# ============================================================================

class Node:
    """
    One operation in a declared expression.

    Nodes are immutable once built. `evaluate` recomputes the output from
    the current parameter values; `value` reads the last computed output.
    """

    def __init__(self, op: str, inputs: Tuple['Node', ...], fn: Callable[..., torch.Tensor]):
        self.op = op
        self.inputs = inputs
        self._fn = fn
        self._output: Optional[torch.Tensor] = None

    def evaluate(self) -> torch.Tensor:
        args = [node.evaluate() for node in self.inputs]
        self._output = self._fn(*args)
        return self._output

    def output(self) -> torch.Tensor:
        """Last evaluated output, detached from the graph"""
        if self._output is None:
            with torch.no_grad():
                self.evaluate()
        return self._output.detach()

    def value(self) -> List[float]:
        """Last evaluated output as a flat, row-major list"""
        return self.output().reshape(-1).tolist()

    def __repr__(self):
        return f"{self.op}({', '.join(repr(node) for node in self.inputs)})"


class Leaf(Node):
    """A named entry of a ParameterSet"""

    def __init__(self, params: ParameterSet, name: str):
        if name not in params:
            raise KeyError(f"Unknown parameter: {name}")
        super().__init__(name, (), None)
        self.params = params
        self.name = name

    def evaluate(self) -> torch.Tensor:
        self._output = self.params[self.name]
        return self._output

    def __repr__(self):
        return self.name


def mul(weight: Node, x: Node) -> Node:
    """Matrix product `x @ weight.T`"""
    return Node('mul', (weight, x), lambda w, v: F.linear(v, w))


def add(a: Node, b: Node) -> Node:
    """Elementwise sum; a one-row `b` broadcasts over the rows of `a`"""
    return Node('add', (a, b), torch.add)


def hadamard(a: Node, b: Node) -> Node:
    """Elementwise product"""
    return Node('hadamard', (a, b), torch.mul)


def sigmoid(a: Node) -> Node:
    return Node('sigmoid', (a,), torch.sigmoid)


def quadratic(a: Node, b: Node) -> Node:
    """Squared error of each row (sample): sum over the row of (a - b)^2"""
    return Node('quadratic', (a, b), lambda x, y: ((x - y) ** 2).sum(dim=1))


def sum_all(a: Node) -> Node:
    return Node('sum', (a,), torch.sum)


def avg(a: Node) -> Node:
    return Node('avg', (a,), torch.mean)


def gradient(cost: Node) -> float:
    """
    Evaluate a scalar expression and backpropagate through it.

    Gradients accumulate into the existing buffers, so callers zero them
    first (`ParameterSet.zero`).

    Returns:
        The scalar value of the expression
    """
    output = cost.evaluate()
    if output.numel() != 1:
        raise ValueError(f"gradient needs a scalar expression, got shape {tuple(output.shape)}")
    output.backward()
    return output.item()
