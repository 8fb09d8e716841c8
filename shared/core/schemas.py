from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar, Union

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    """Claims of a verified identity-provider token."""
    sub: str
    email: Optional[str] = None
    role: Optional[str] = None
    aud: Optional[Union[str, List[str]]] = None
    session_id: Optional[str] = None
    exp: Optional[int] = None

    @property
    def user_id(self) -> str:
        return self.sub


class PageQueryParams(EmptyStringModel):
    page: Optional[int] = 1
    limit: Optional[int] = None


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
