"""Formula error types."""

from typing import Optional


class FormulaError(ValueError):
    """Base class for formula parsing and evaluation failures."""

    def __init__(self, message: str, formula: str):
        super().__init__(message)
        self.formula = formula


class FormulaSyntaxError(FormulaError):
    """The formula string is not valid under the supported grammar."""

    def __init__(self, message: str, formula: str, position: Optional[int] = None):
        if position is not None:
            message = f"{message} at position {position} in {formula!r}"
        else:
            message = f"{message} in {formula!r}"
        super().__init__(message, formula)
        self.position = position


class FormulaEvaluationError(FormulaError):
    """A valid formula produced no finite result for the given input."""

    def __init__(self, message: str, formula: str, value: float):
        super().__init__(f"{message} evaluating {formula!r} with value={value!r}", formula)
        self.value = value
