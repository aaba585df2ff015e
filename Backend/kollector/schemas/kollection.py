from typing import List, Optional

from pydantic import BaseModel, field_validator

MAX_NAME_LENGTH = 100


def check_kollection_name(value: str) -> str:
    """Names are stripped before the length limit applies."""
    value = value.strip()
    if not value:
        raise ValueError("Kollection name is required")
    if len(value) > MAX_NAME_LENGTH:
        raise ValueError(f"Kollection name must be at most {MAX_NAME_LENGTH} characters")
    return value


class KollectionBase(BaseModel):
    name: str
    genre_ids: List[int] = []

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return check_kollection_name(value)


class KollectionCreate(KollectionBase):
    pass


class KollectionUpdate(BaseModel):
    name: Optional[str] = None
    genre_ids: Optional[List[int]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return check_kollection_name(value)


class KollectionResponse(BaseModel):
    id: int
    name: str
    genre_ids: List[int] = []
    genre_names: List[str] = []
