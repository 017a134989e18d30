"""Data interface module."""

from .conversion_rule import DEFAULT_DECIMALS, MAX_DECIMALS, NO_DATA_SENTINEL, ConversionRule, format_number
from .data_point import DEFAULT_SOURCE, DataPoint, ValueKind
from .metadata_descriptor import MalformedMetadataError, MetadataDescriptor, parse_descriptor

__all__ = [
    "ConversionRule",
    "DataPoint",
    "DEFAULT_DECIMALS",
    "DEFAULT_SOURCE",
    "MAX_DECIMALS",
    "MalformedMetadataError",
    "MetadataDescriptor",
    "NO_DATA_SENTINEL",
    "ValueKind",
    "format_number",
    "parse_descriptor",
]
