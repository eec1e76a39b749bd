from pydantic import BaseModel, Field

from staffcover.models.teacher import UserRole


class TeacherIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    role: UserRole
    secondary_roles: list[UserRole] = Field(default_factory=list)
    is_resigned: bool = False


class TeacherOut(BaseModel):
    id: str
    name: str
    role: UserRole
    secondary_roles: list[UserRole]
    is_resigned: bool

    model_config = {"from_attributes": True}
