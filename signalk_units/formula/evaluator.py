"""Formula evaluation against a single bound ``value``."""

import math
from functools import lru_cache

from .errors import FormulaEvaluationError
from .parser import Node, Variable, parse


class CompiledFormula:
    """A parsed formula, safe to evaluate concurrently from many threads."""

    __slots__ = ("source", "_root")

    def __init__(self, source: str, root: Node):
        self.source = source
        self._root = root

    @property
    def is_identity(self) -> bool:
        return isinstance(self._root, Variable)

    def evaluate(self, value: float) -> float:
        """Evaluate the formula with ``value`` bound to the input.

        Raises:
            FormulaEvaluationError: If the input is not a finite number, or the
                result is undefined (division by zero, overflow, complex) or
                non-finite.
        """
        try:
            x = float(value)
        except (TypeError, ValueError, OverflowError):
            raise FormulaEvaluationError("Non-numeric input", self.source, value) from None
        if not math.isfinite(x):
            raise FormulaEvaluationError("Non-finite input", self.source, value)

        try:
            result = self._root.evaluate(x)
        except ZeroDivisionError:
            raise FormulaEvaluationError("Division by zero", self.source, value) from None
        except OverflowError:
            raise FormulaEvaluationError("Numeric overflow", self.source, value) from None
        except ValueError:
            raise FormulaEvaluationError("Undefined result", self.source, value) from None

        if not math.isfinite(result):
            raise FormulaEvaluationError("Non-finite result", self.source, value)
        return result

    def __repr__(self) -> str:
        return f"CompiledFormula({self.source!r})"


@lru_cache(maxsize=1024)
def compile_formula(formula: str) -> CompiledFormula:
    """Parse ``formula`` once; repeated calls return the cached result."""
    return CompiledFormula(formula, parse(formula))


def evaluate(formula: str, value: float) -> float:
    """Evaluate ``formula`` for one input value.

    Example:
        ``evaluate("value * 1.94384", 5.0)`` returns ``9.7192``.
    """
    return compile_formula(formula).evaluate(value)
