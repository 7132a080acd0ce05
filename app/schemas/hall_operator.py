from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class HallOperatorCreateRequest(BaseModel):
    hall_name: str = Field(min_length=1, max_length=120)
    head_name: str = Field(min_length=1, max_length=120)
    head_email: EmailStr
    phone: str | None = Field(default=None, max_length=20)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HallOperatorResponse(BaseModel):
    id: int
    hall_name: str
    head_name: str
    head_email: str
    phone: str | None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
