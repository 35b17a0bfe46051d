"""Forum-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ForumCreate(BaseModel):
    """Schema for creating or replacing a forum's editable fields."""

    title: str
    description: str
    category_id: int


class ForumResponse(BaseModel):
    id: int
    title: str
    description: str
    category_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
