"""
Parsing of server-declared unit conversion metadata.

A SignalK server declares conversions for a path in one of three shapes:

- the discovery shape, ``{baseUnit, category, conversions: {unit: {formula,
  inverseFormula, symbol, description}}}``;
- the streamed ``displayUnits`` object, ``{units, formula, inverseFormula,
  symbol, category, displayFormat}``, where ``units`` is the display unit;
- a full meta value, ``{units, displayUnits: {...}}``, where ``units`` is the
  SI unit.

All three are normalised to the discovery shape before validation. Unknown
fields are ignored.
"""

import re
from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, StringConstraints, ValidationError, model_validator

from signalk_units.formula import FormulaSyntaxError

from .conversion_rule import DEFAULT_DECIMALS, MAX_DECIMALS, ConversionRule

UnitStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
FormulaStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_FORMAT_DECIMALS_RE = re.compile(r"\.([0#]+)")


class MalformedMetadataError(ValueError):
    """A metadata descriptor is missing required fields or has invalid formulas."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed metadata for {path}: {reason}")
        self.path = path
        self.reason = reason


class ConversionDescriptor(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    formula: FormulaStr
    inverse_formula: FormulaStr = Field(alias="inverseFormula")
    symbol: Optional[str] = None
    description: Optional[str] = None


class MetadataDescriptor(BaseModel):
    model_config = {"extra": "ignore", "populate_by_name": True}

    base_unit: Optional[UnitStr] = Field(default=None, alias="baseUnit")
    category: Optional[str] = None
    target_unit: Optional[UnitStr] = Field(default=None, alias="targetUnit")
    conversions: dict[UnitStr, ConversionDescriptor] = Field(min_length=1)
    display_format: Optional[str] = Field(default=None, alias="displayFormat")
    decimals: Optional[int] = Field(default=None, ge=0, le=MAX_DECIMALS)

    @model_validator(mode="before")
    @classmethod
    def _normalise_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "conversions" in data:
            return data

        nested = data.get("displayUnits")
        if nested is not None:
            if not isinstance(nested, dict):
                raise ValueError("displayUnits must be an object")
            flat = dict(nested)
            if data.get("units") is not None:
                flat.setdefault("baseUnit", data["units"])
            data = flat

        target = data.get("targetUnit") or data.get("units") or data.get("symbol")
        if target is None:
            raise ValueError("no target unit or symbol declared")
        if not isinstance(target, str):
            raise ValueError("target unit must be a string")

        return {
            "baseUnit": data.get("baseUnit"),
            "category": data.get("category"),
            "targetUnit": target,
            "displayFormat": data.get("displayFormat"),
            "decimals": data.get("decimals"),
            "conversions": {
                target: {
                    "formula": data.get("formula"),
                    "inverseFormula": data.get("inverseFormula"),
                    "symbol": data.get("symbol"),
                    "description": data.get("description"),
                }
            },
        }

    @model_validator(mode="after")
    def _check_target(self) -> "MetadataDescriptor":
        if self.target_unit is not None and self.target_unit not in self.conversions:
            raise ValueError(f"targetUnit {self.target_unit!r} has no conversion")
        return self

    @property
    def selected_unit(self) -> str:
        """The display unit in use: ``targetUnit`` when given, else the first conversion."""
        if self.target_unit is not None:
            return self.target_unit
        return next(iter(self.conversions))

    def resolved_decimals(self) -> int:
        if self.decimals is not None:
            return self.decimals
        if self.display_format:
            match = _FORMAT_DECIMALS_RE.search(self.display_format)
            return min(len(match.group(1)), MAX_DECIMALS) if match else 0
        return DEFAULT_DECIMALS

    def to_rule(self, path: str) -> ConversionRule:
        unit = self.selected_unit
        conversion = self.conversions[unit]
        return ConversionRule(
            path=path,
            base_unit=self.base_unit,
            target_unit=unit,
            forward_formula=conversion.formula,
            inverse_formula=conversion.inverse_formula,
            symbol=conversion.symbol or unit,
            decimals=self.resolved_decimals(),
            category=self.category,
            display_format=self.display_format,
        )


def parse_descriptor(path: str, descriptor: Any) -> ConversionRule:
    """Validate a raw descriptor and build the rule for ``path``.

    Raises:
        MalformedMetadataError: If the descriptor cannot produce a complete rule.
    """
    if not isinstance(path, str) or not path:
        raise MalformedMetadataError(str(path), "path must be a non-empty string")
    try:
        return MetadataDescriptor.model_validate(descriptor).to_rule(path)
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'descriptor'}: {err['msg']}" for err in e.errors()
        )
        raise MalformedMetadataError(path, reasons) from e
    except FormulaSyntaxError as e:
        raise MalformedMetadataError(path, str(e)) from e
