from typing import Generic, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    status: int
    data: T
    message: str
    success: bool = True

    @classmethod
    def ok(cls, data: T, message: str, status: int = 200) -> "ApiResponse[T]":
        return cls(status=status, data=data, message=message, success=status < 400)


class ErrorResponse(BaseModel):
    status: int
    message: str
    success: bool = False
