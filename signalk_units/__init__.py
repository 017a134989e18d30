"""signalk-units: unit metadata, conversion and value resolution for SignalK telemetry."""

from signalk_units.connection import CommandConversionError, SignalKSession, build_put_request
from signalk_units.data_interface import ConversionRule, DataPoint, MalformedMetadataError, ValueKind
from signalk_units.delta import DeltaDispatcher, InvalidDeltaError
from signalk_units.formula import FormulaError, FormulaEvaluationError, FormulaSyntaxError, evaluate
from signalk_units.resolution import ValueResolver
from signalk_units.store import DataPointCache, MetadataStore

__version__ = "1.0.1"

__all__ = [
    "CommandConversionError",
    "ConversionRule",
    "DataPoint",
    "DataPointCache",
    "DeltaDispatcher",
    "FormulaError",
    "FormulaEvaluationError",
    "FormulaSyntaxError",
    "InvalidDeltaError",
    "MalformedMetadataError",
    "MetadataStore",
    "SignalKSession",
    "ValueKind",
    "ValueResolver",
    "__version__",
    "build_put_request",
    "evaluate",
]
