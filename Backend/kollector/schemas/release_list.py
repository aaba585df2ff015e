import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_NAME_LENGTH = 200


class ListBase(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("List name is required")
        if len(value) > MAX_NAME_LENGTH:
            raise ValueError(f"List name must be at most {MAX_NAME_LENGTH} characters")
        return value


class ListCreate(ListBase):
    pass


class ListUpdate(ListBase):
    pass


class ListSummary(BaseModel):
    id: int
    name: str
    release_count: int = 0
    created_at: datetime.datetime
    last_modified: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ListResponse(ListSummary):
    release_ids: List[int] = []


class AddReleaseToList(BaseModel):
    release_id: int = Field(..., gt=0)
