"""Configured pipeline stages.

Each stage is a callable ``stage(collection, query) -> list`` whose options
are validated once at construction:
- search: free-text match over explicit or discovered fields
- filter: AND of field/operator/value conditions
- sort: stable single-field ordering
- paginate: 1-indexed page slicing
- group: first-seen bucketing
"""

from query_pipeline.stages.base import BaseStage, Stage, build_options
from query_pipeline.stages.filter import FilterStage
from query_pipeline.stages.group import GroupStage, IdentityKey
from query_pipeline.stages.paginate import PaginateStage
from query_pipeline.stages.search import SearchStage
from query_pipeline.stages.sort import SortStage


__all__ = [
    "BaseStage",
    "FilterStage",
    "GroupStage",
    "IdentityKey",
    "PaginateStage",
    "SearchStage",
    "SortStage",
    "Stage",
    "build_options",
]
