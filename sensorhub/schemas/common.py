"""
Common Schemas
==============

Shared Pydantic base model and query-string models for list endpoints.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from sensorhub.domain.exceptions import ValidationError, from_pydantic


class CamelModel(BaseModel):
    """Base for request models: camelCase on the wire, snake_case accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PageQuery(CamelModel):
    """Pagination query parameters (range checks happen in PaginationParams)."""

    page: Optional[int] = Field(default=None, description="1-indexed page number")
    limit: Optional[int] = Field(default=None, description="Items per page")


class DeviceListQuery(PageQuery):
    type: Optional[str] = None
    status: Optional[str] = None
    sensor_category: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("sensorCategory", "sensor_category", "category"),
        description="Keep devices owning a sensor of this category",
    )


class SensorListQuery(PageQuery):
    device_id: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None


def parse_model(model: type[BaseModel], raw: Any, message: str = "Invalid payload") -> Any:
    """
    Validate ``raw`` against ``model``.

    Raises:
        ValidationError: With the pydantic error list under ``detail["errors"]``
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError(message, detail={"errors": [{"loc": "", "msg": "Expected a JSON object", "type": "dict_type"}]})
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        raise from_pydantic(exc, message) from exc
