"""Conversion rule for a single SignalK path."""

import time
from dataclasses import dataclass, field
from typing import Optional

from signalk_units.formula import CompiledFormula, FormulaEvaluationError, compile_formula

DEFAULT_DECIMALS = 1
MAX_DECIMALS = 10
NO_DATA_SENTINEL = "--"


def format_number(number: float, decimals: int) -> str:
    """Render ``number`` with a fixed number of decimals, without ``-0.0``."""
    decimals = max(0, int(decimals))
    text = f"{number:.{decimals}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return text


@dataclass(frozen=True)
class ConversionRule:
    """Bidirectional SI <-> display conversion for one path.

    Both formulas are compiled on construction, so a rule with an invalid
    formula cannot exist. Rules are never modified; a new delta for the same
    path produces a new instance.
    """

    path: str
    target_unit: str
    forward_formula: str
    inverse_formula: str
    symbol: str
    base_unit: Optional[str] = None
    decimals: int = DEFAULT_DECIMALS
    category: Optional[str] = None
    display_format: Optional[str] = None
    updated_at: float = field(default_factory=time.time, compare=False)

    _forward: CompiledFormula = field(init=False, repr=False, compare=False)
    _inverse: CompiledFormula = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_forward", compile_formula(self.forward_formula))
        object.__setattr__(self, "_inverse", compile_formula(self.inverse_formula))

    @property
    def is_identity(self) -> bool:
        return self._forward.is_identity and self._inverse.is_identity

    def to_display(self, si_value: float) -> float:
        """Convert an SI value to the display unit.

        Raises:
            FormulaEvaluationError: If the forward formula has no finite result.
        """
        return self._forward.evaluate(si_value)

    def to_si(self, display_value: float) -> float:
        """Convert a display-unit value back to SI.

        Raises:
            FormulaEvaluationError: If the inverse formula has no finite result.
        """
        return self._inverse.evaluate(display_value)

    def try_to_display(self, si_value: float) -> Optional[float]:
        try:
            return self.to_display(si_value)
        except FormulaEvaluationError:
            return None

    def try_to_si(self, display_value: float) -> Optional[float]:
        try:
            return self.to_si(display_value)
        except FormulaEvaluationError:
            return None

    def format(
        self,
        si_value: float,
        decimals: Optional[int] = None,
        include_unit: bool = True,
        sentinel: str = NO_DATA_SENTINEL,
    ) -> str:
        """Convert and format, e.g. ``"10.5 kn"``. Returns ``sentinel`` on failure."""
        display = self.try_to_display(si_value)
        if display is None:
            return sentinel
        text = format_number(display, self.decimals if decimals is None else decimals)
        if include_unit and self.symbol:
            return f"{text} {self.symbol}"
        return text

    def to_dict(self) -> dict:
        """Convert to a descriptor dict; feeding it back to the store rebuilds the rule."""
        return {
            "baseUnit": self.base_unit,
            "targetUnit": self.target_unit,
            "category": self.category,
            "formula": self.forward_formula,
            "inverseFormula": self.inverse_formula,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "displayFormat": self.display_format,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, path: str, data: dict) -> "ConversionRule":
        """Rebuild a rule exported by ``to_dict``.

        Raises:
            KeyError: If a formula or the target unit is missing.
            TypeError: If ``data`` is not a mapping.
            ValueError: If a stored formula no longer parses or a number is invalid.
        """
        target_unit = data["targetUnit"]
        kwargs = {}
        if data.get("updatedAt") is not None:
            kwargs["updated_at"] = float(data["updatedAt"])
        return cls(
            path=path,
            target_unit=target_unit,
            forward_formula=data["formula"],
            inverse_formula=data["inverseFormula"],
            symbol=data.get("symbol") or target_unit,
            base_unit=data.get("baseUnit"),
            decimals=min(max(int(data.get("decimals", DEFAULT_DECIMALS)), 0), MAX_DECIMALS),
            category=data.get("category"),
            display_format=data.get("displayFormat"),
            **kwargs,
        )
