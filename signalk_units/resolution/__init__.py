from .value_resolver import ValueResolver

__all__ = ["ValueResolver"]
