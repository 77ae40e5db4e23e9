"""
Query-string filter parsing for list endpoints.

Filters are read from the raw query parameters and validated as a
whole, so a request with several malformed values is rejected once
with every bad parameter named.
"""

from typing import Callable, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from project_manager_api.app.core.errors import ValidationFailedError


F = TypeVar("F", bound=BaseModel)


def query_filters(model_cls: Type[F]) -> Callable[[Request], F]:
    """Dependency factory building ``model_cls`` from the query string.

    Unknown parameters and empty values are ignored.

    Raises
    ------
    ValidationFailedError
        Listing each parameter that could not be parsed.
    """

    def _dependency(request: Request) -> F:
        raw = {
            key: value
            for key, value in request.query_params.items()
            if key in model_cls.model_fields and value != ""
        }
        try:
            return model_cls.model_validate(raw)
        except ValidationError as exc:
            problems = []
            for err in exc.errors():
                name = str(err["loc"][0]) if err.get("loc") else "query"
                problems.append(f"{name} ({err['msg']})")
            raise ValidationFailedError("invalid query parameters: " + ", ".join(problems)) from exc

    return _dependency
