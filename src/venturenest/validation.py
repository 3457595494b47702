"""Input model parsing shared by the services.

Services accept either a Pydantic input model or a plain mapping. Pydantic
errors are converted into ValidationFailure so callers only ever see the
VentureNest error taxonomy.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from venturenest.errors import ValidationFailure

ModelT = TypeVar("ModelT", bound=BaseModel)


def describe_errors(error: PydanticValidationError) -> str:
    """Summarize a Pydantic error as 'field: reason; field: reason'."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "input"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_input(
    model: type[ModelT],
    data: ModelT | Mapping[str, Any],
    *,
    collection: str | None = None,
) -> ModelT:
    """Return data as an instance of model.

    Raises:
        ValidationFailure: If the mapping does not satisfy the model.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationFailure(
            f"Invalid input: {describe_errors(e)}", collection=collection
        ) from e
