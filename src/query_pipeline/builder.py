"""Build stages and pipelines from plain configuration mappings.

Each mapping names its stage type under ``"stage"`` and carries that stage's
options alongside it::

    build_pipeline([
        {"stage": "search", "match": "fuzzy", "fields": ["name"]},
        {"stage": "sort", "field": "name"},
        {"stage": "paginate", "page_size": 20},
    ])

A ``{"stage": "pipeline", "stages": [...]}`` entry nests a pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from query_pipeline.errors import InvalidConfigurationError
from query_pipeline.pipeline import Pipeline
from query_pipeline.stages import FilterStage, GroupStage, PaginateStage, SearchStage, SortStage
from query_pipeline.stages.base import BaseStage, Stage


STAGE_TYPES: dict[str, type[BaseStage[Any]]] = {
    SearchStage.name: SearchStage,
    FilterStage.name: FilterStage,
    SortStage.name: SortStage,
    PaginateStage.name: PaginateStage,
    GroupStage.name: GroupStage,
}


def build_stage(config: Mapping[str, Any]) -> Stage:
    """Instantiate one stage from its configuration mapping.

    Raises:
        InvalidConfigurationError: For an unknown stage type or invalid options.
    """
    if not isinstance(config, Mapping):
        raise InvalidConfigurationError(f"Stage configuration must be a mapping, got {type(config).__name__}")

    options = dict(config)
    stage_type = options.pop("stage", None)
    if stage_type == Pipeline.name:
        return build_pipeline(options.pop("stages", []))

    stage_cls = STAGE_TYPES.get(stage_type) if isinstance(stage_type, str) else None
    if stage_cls is None:
        known = ", ".join([*STAGE_TYPES, Pipeline.name])
        raise InvalidConfigurationError(f"Unknown stage type {stage_type!r}. Expected one of: {known}")
    return stage_cls(options)


def build_pipeline(configs: Iterable[Mapping[str, Any]]) -> Pipeline:
    """Instantiate a pipeline whose stages are built from ``configs`` in order."""
    if isinstance(configs, (str, bytes, Mapping)):
        raise InvalidConfigurationError("Pipeline configuration must be a list of stage mappings")
    return Pipeline([build_stage(config) for config in configs])
