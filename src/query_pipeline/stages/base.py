"""Shared stage contract and option handling."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, ClassVar, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from query_pipeline.errors import InvalidConfigurationError


Record = Mapping[str, Any]
Collection = Sequence[Any]

OptionsT = TypeVar("OptionsT", bound=BaseModel)


@runtime_checkable
class Stage(Protocol):
    """Anything callable as ``stage(collection, query) -> collection``."""

    def __call__(self, collection: Collection | None, query: str | None) -> Any: ...


def build_options(
    model: type[OptionsT],
    options: OptionsT | Mapping[str, Any] | None,
    overrides: dict[str, Any],
) -> OptionsT:
    """Validate stage options given as a model, a mapping, keyword arguments, or a mix.

    Keyword arguments override keys from ``options``.

    Raises:
        InvalidConfigurationError: If validation fails.
    """
    if isinstance(options, model) and not overrides:
        return options

    if options is None:
        data: dict[str, Any] = {}
    elif isinstance(options, BaseModel):
        data = {name: getattr(options, name) for name in options.model_fields_set}
    elif isinstance(options, Mapping):
        data = dict(options)
    else:
        raise InvalidConfigurationError(f"Expected {model.__name__} or a mapping, got {type(options).__name__}")
    data.update(overrides)

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigurationError(f"Invalid {model.__name__}: {exc}") from exc


class BaseStage(Generic[OptionsT]):
    """Common plumbing for configured stages.

    Subclasses set ``name`` and ``options_model`` and implement ``__call__``.
    Options are validated once at construction and never change afterwards.
    """

    name: ClassVar[str] = "stage"
    options_model: ClassVar[type[BaseModel]]

    def __init__(self, options: OptionsT | Mapping[str, Any] | None = None, **overrides: Any) -> None:
        self.options: OptionsT = build_options(self.options_model, options, overrides)  # type: ignore[arg-type]

    def __call__(self, collection: Collection | None, query: str | None) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"
