from pydantic import BaseModel, ConfigDict, field_validator


class LookupBase(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class LookupCreate(LookupBase):
    pass  # Max length depends on the table and is checked by LookupService


class LookupUpdate(LookupBase):
    pass


class LookupResponse(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)
