from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ApiListResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    count: int = 0
    data: List[T] = Field(default_factory=list)
