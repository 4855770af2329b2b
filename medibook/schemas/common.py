from typing import Any, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API models exchanged in camelCase (snake_case accepted on input)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def success_response(data: Optional[Any] = None, message: Optional[str] = None) -> dict:
    """Build the `{success, message?, data?}` envelope."""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(message: str, **extra) -> dict:
    body = {"success": False, "message": message}
    body.update(extra)
    return body
