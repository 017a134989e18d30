"""Restricted arithmetic formulas used by unit conversions."""

from .errors import FormulaError, FormulaEvaluationError, FormulaSyntaxError
from .evaluator import CompiledFormula, compile_formula, evaluate

__all__ = [
    "CompiledFormula",
    "FormulaError",
    "FormulaEvaluationError",
    "FormulaSyntaxError",
    "compile_formula",
    "evaluate",
]
