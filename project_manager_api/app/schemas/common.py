"""
Helpers shared by the query-filter schemas.

Date bounds arrive as plain query strings and are parsed with the
configured ``settings.date_format`` (``YYYY-MM-DD`` by default) rather
than pydantic's more permissive date coercion.
"""

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator

from project_manager_api.app.core.config import settings


def parse_query_date(value: Any) -> Any:
    if value is None or value == "" or isinstance(value, date):
        return value or None
    if isinstance(value, str):
        try:
            return datetime.strptime(value, settings.date_format).date()
        except ValueError as exc:
            raise ValueError(f"expected a date formatted as {settings.date_format}") from exc
    raise ValueError(f"expected a date formatted as {settings.date_format}")


QueryDate = Annotated[Optional[date], BeforeValidator(parse_query_date)]
