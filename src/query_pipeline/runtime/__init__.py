"""Host integration helpers."""

from query_pipeline.runtime.debounce import DebouncedSearch


__all__ = ["DebouncedSearch"]
