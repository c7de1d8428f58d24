import json
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes as camelCase, accepts either camelCase or snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class StatusMessage(BaseModel):
    status: str = "success"
    message: str


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PaginationParams(CamelModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def build_page_meta(total: int, page: int, limit: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def parse_json_value(value: Any) -> Any:
    """Decode JSON-encoded strings sent by multipart forms.

    Raises ValueError so pydantic reports the field as invalid.
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[0] in "[{":
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON: {e.msg}")
    return value


def blank_to_none(data: Any) -> Any:
    """Form fields arrive as '' when left empty; treat those as missing."""
    if isinstance(data, dict):
        return {k: (None if v == "" else v) for k, v in data.items()}
    return data


def envelope(data: Any = None, meta: Optional[dict] = None) -> dict:
    body = {"status": "success", "data": data}
    if meta is not None:
        body["meta"] = PageMeta(**meta) if isinstance(meta, dict) else meta
    return body
