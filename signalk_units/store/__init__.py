from .data_point_cache import DEFAULT_TTL_S, DataPointCache
from .metadata_store import MetadataStore

__all__ = ["DataPointCache", "DEFAULT_TTL_S", "MetadataStore"]
