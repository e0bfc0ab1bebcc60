# backend/grassroutes/schemas/response.py
from pydantic import BaseModel
from typing import Generic, TypeVar, Optional

T = TypeVar('T')
class StandardResponse(BaseModel, Generic[T]):
    """Standard response envelope.

    Every API payload is wrapped as ``{code, message, data}``.

    Attributes:
        code: status code, 200 on success
        message: 'success' on success
        data: payload, typed per endpoint
    """
    code: int = 200
    message: str = 'success'
    data: Optional[T]
