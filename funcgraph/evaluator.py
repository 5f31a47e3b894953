"""
evaluator: turn expression text into total numeric functions
============================================================

Purpose
-------
Two layers live here:

- :class:`SympyEvaluator`, the default *expression evaluator* collaborator.
  It parses text with SymPy and compiles it to a NumPy callable. Like any
  evaluator it may raise on malformed input or unbound names.
- :class:`EvaluatorAdapter`, the single place where evaluator failures are
  caught. Every downstream algorithm sees a total function
  ``float -> Optional[float]`` (or a float array with ``NaN`` holes) and never
  an exception.

Parsing rules
-------------
``^`` is read as power, implicit multiplication (``2x``) and application
(``sin x``) are accepted, and ``ln``/``e``/``pi`` are available. Any free
symbol other than ``x`` becomes a named binding that must be supplied at
evaluation time. Text is parsed without simplification, so ``x/x`` stays
undefined at ``0``. Only arithmetic characters and a fixed set of SymPy
functions are accepted; attribute access, dunder names and unknown function
calls are rejected before anything runs.

Examples
--------
>>> adapter = EvaluatorAdapter(SympyEvaluator())
>>> adapter.evaluate("x^2 + 1", 2.0)
5.0
>>> adapter.evaluate("1/x", 0.0) is None
True
>>> adapter.evaluate("sqrt(x)", -1.0) is None
True

Logging
-------
This module uses Python's standard :mod:`logging` library and is silent by
default. Enable ``logging.getLogger("funcgraph.evaluator")`` at DEBUG to see
evaluation failures.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_application,
    implicit_multiplication,
    parse_expr,
    standard_transformations,
)

__all__ = [
    "CompiledExpression",
    "EvaluatorAdapter",
    "ExpressionEvaluator",
    "ExpressionFunction",
    "SympyEvaluator",
    "compile_expression",
]


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

X = sp.Symbol("x")

_TRANSFORMATIONS = standard_transformations + (
    convert_xor,
    implicit_multiplication,
    implicit_application,
)
_LOCAL_NAMES: dict[str, Any] = {"x": X, "ln": sp.log, "e": sp.E, "pi": sp.pi}

# Names the parser may resolve; anything else becomes a Symbol or an undefined
# Function. No Python builtins are reachable from the evaluated code.
_SAFE_SYMPY_NAMES = (
    "Symbol", "Function", "Integer", "Float", "Rational", "Number",
    "Add", "Mul", "Pow", "Abs",
    "sin", "cos", "tan", "cot", "sec", "csc",
    "asin", "acos", "atan", "atan2", "acot",
    "sinh", "cosh", "tanh", "asinh", "acosh", "atanh",
    "exp", "log", "sqrt", "cbrt", "root", "floor", "ceiling", "sign",
    "Min", "Max", "E", "pi", "I", "oo", "factorial", "gamma",
    "Eq", "Ne", "Lt", "Le", "Gt", "Ge",
    "StrictGreaterThan", "StrictLessThan", "GreaterThan", "LessThan",
    "Not", "And", "Or", "re", "im",
)
_GLOBAL_NAMES: dict[str, Any] = {name: getattr(sp, name) for name in _SAFE_SYMPY_NAMES}
_GLOBAL_NAMES["__builtins__"] = {}

_ALLOWED_TEXT = re.compile(r"[0-9A-Za-z_\s.,+\-*/^()<>=!]*")
_ATTRIBUTE_ACCESS = re.compile(r"[A-Za-z_)]\s*\.")


def _check_text(text: str) -> None:
    if "__" in text:
        raise ValueError(f"Dunder names are not allowed in expressions: {text!r}")
    if not _ALLOWED_TEXT.fullmatch(text):
        raise ValueError(f"Unsupported characters in expression: {text!r}")
    if _ATTRIBUTE_ACCESS.search(text):
        raise ValueError(f"Attribute access is not allowed in expressions: {text!r}")


Bindings = Mapping[str, float]
ExpressionFunction = Callable[[float], Optional[float]]


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """External collaborator contract: evaluate text with ``x`` bound.

    Implementations may raise for malformed input and may return anything;
    :class:`EvaluatorAdapter` sorts out what counts as a number.
    """

    def evaluate(self, expression: str, bindings: Bindings) -> Any: ...


@dataclass(frozen=True)
class CompiledExpression:
    """Parsed and lambdified form of one expression string."""

    text: str
    symbolic: sp.Basic
    parameter_names: tuple[str, ...]
    fn: Callable[..., Any]

    def __call__(self, x: Any, bindings: Optional[Bindings] = None) -> Any:
        bound = bindings or {}
        args = [bound[name] for name in self.parameter_names]
        with np.errstate(all="ignore"):
            return self.fn(x, *args)


@lru_cache(maxsize=512)
def compile_expression(expression: str) -> CompiledExpression:
    """Parse and compile ``expression`` with ``x`` as the independent variable.

    Raises
    ------
    ValueError
        If the text is empty, contains characters outside the arithmetic
        vocabulary, or uses attribute access or undefined functions.
    SyntaxError, TypeError, sympy.SympifyError
        Propagated from SymPy for malformed input.
    """
    text = expression.strip()
    if not text:
        raise ValueError("Cannot compile an empty expression.")
    _check_text(text)
    # evaluate=False keeps x/x and sqrt(x)**2 from simplifying away their domain.
    symbolic = parse_expr(
        text,
        local_dict=dict(_LOCAL_NAMES),
        global_dict=dict(_GLOBAL_NAMES),
        transformations=_TRANSFORMATIONS,
        evaluate=False,
    )
    symbolic = sp.sympify(symbolic)
    undefined = symbolic.atoms(AppliedUndef)
    if undefined:
        names = sorted(str(f.func) for f in undefined)
        raise ValueError(f"Unknown functions in expression {text!r}: {names}")
    parameters = tuple(sorted((s for s in symbolic.free_symbols if s != X), key=lambda s: s.name))
    fn = sp.lambdify((X, *parameters), symbolic, modules="numpy")
    logger.debug("compiled %r -> %s (parameters=%s)", text, symbolic, [p.name for p in parameters])
    return CompiledExpression(
        text=text,
        symbolic=symbolic,
        parameter_names=tuple(p.name for p in parameters),
        fn=fn,
    )


class SympyEvaluator:
    """Default expression evaluator backed by SymPy and NumPy."""

    def compile(self, expression: str) -> CompiledExpression:
        return compile_expression(expression)

    def evaluate(self, expression: str, bindings: Bindings) -> Any:
        """Evaluate ``expression`` at ``bindings["x"]``; may raise."""
        compiled = self.compile(expression)
        return compiled(np.float64(bindings["x"]), bindings)

    def evaluate_array(self, expression: str, xs: np.ndarray, bindings: Optional[Bindings] = None) -> Any:
        """Vectorized evaluation over ``xs``; may raise."""
        compiled = self.compile(expression)
        return compiled(np.asarray(xs, dtype=float), bindings)


def _as_real(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` if it is not one."""
    if isinstance(value, np.ndarray):
        if value.size != 1:
            return None
        value = value.reshape(()).item()
    if isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Complex) and not isinstance(value, numbers.Real):
        if value.imag != 0:
            return None
        value = value.real
    if not isinstance(value, numbers.Real):
        return None
    result = float(value)
    return result if math.isfinite(result) else None


class EvaluatorAdapter:
    """Wrap an :class:`ExpressionEvaluator` into total numeric functions.

    Parameters
    ----------
    evaluator : ExpressionEvaluator, optional
        Collaborator to wrap. Defaults to :class:`SympyEvaluator`.
    """

    def __init__(self, evaluator: Optional[ExpressionEvaluator] = None) -> None:
        self._evaluator = evaluator if evaluator is not None else SympyEvaluator()

    @property
    def evaluator(self) -> ExpressionEvaluator:
        return self._evaluator

    def evaluate(self, expression: str, x: float, bindings: Optional[Bindings] = None) -> Optional[float]:
        """Return ``f(x)`` or ``None`` when the function is undefined at ``x``."""
        scope = dict(bindings or {})
        scope["x"] = x
        try:
            raw = self._evaluator.evaluate(expression, scope)
        except Exception as exc:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("evaluate(%r, x=%r) failed: %s", expression, x, exc)
            return None
        return _as_real(raw)

    def function(self, expression: str, bindings: Optional[Bindings] = None) -> ExpressionFunction:
        """Return a total single-variable callable for ``expression``."""
        frozen = dict(bindings or {})

        def _f(x: float) -> Optional[float]:
            return self.evaluate(expression, x, frozen)

        _f.__name__ = f"f[{expression}]"
        return _f

    def evaluate_many(
        self,
        expression: str,
        xs: Sequence[float] | np.ndarray,
        bindings: Optional[Bindings] = None,
    ) -> np.ndarray:
        """Evaluate at every ``xs`` and return floats with ``NaN`` for gaps.

        Uses the evaluator's vectorized path when it offers one, otherwise (or
        when the vectorized call fails) falls back to point-wise evaluation.
        """
        x_values = np.asarray(xs, dtype=float)
        vectorized = getattr(self._evaluator, "evaluate_array", None)
        if callable(vectorized):
            try:
                raw = vectorized(expression, x_values, bindings)
                return self._coerce_array(raw, x_values.shape)
            except Exception as exc:
                logger.debug("vectorized evaluation of %r failed, using point-wise path: %s", expression, exc)

        out = np.full(x_values.shape, np.nan, dtype=float)
        for index, x in enumerate(x_values.tolist()):
            value = self.evaluate(expression, x, bindings)
            if value is not None:
                out[index] = value
        return out

    @staticmethod
    def _coerce_array(raw: Any, shape: tuple[int, ...]) -> np.ndarray:
        values = np.asarray(raw)
        if values.dtype == bool or values.dtype == object:
            raise TypeError(f"non-numeric result dtype {values.dtype}")
        values = np.broadcast_to(values, shape)
        if np.iscomplexobj(values):
            real = np.where(values.imag == 0, values.real, np.nan)
        else:
            real = values.astype(float, copy=True)
        real[~np.isfinite(real)] = np.nan
        return real
