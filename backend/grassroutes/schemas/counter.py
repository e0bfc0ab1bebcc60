from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CounterIncrementRequest(BaseModel):
    """Body of POST /api/global-counter/increment"""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, max_length=200)
    lesson_id: int = Field(..., alias="lessonId", ge=1)
    question_count: int = Field(..., alias="questionCount", ge=1, le=1000)


class CounterIncrementResponse(BaseModel):
    success: bool
    count: Optional[int] = None
    message: Optional[str] = None


class CounterCountResponse(BaseModel):
    count: int = 0
