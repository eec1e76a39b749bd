from pydantic import BaseModel, Field


class BlockAllocationIn(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=64)
    teacher_name: str = ""
    subject: str = ""
    room: str | None = None


class CombinedBlockIn(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    name: str = Field(default="", max_length=200)
    section_names: list[str] = Field(default_factory=list)
    allocations: list[BlockAllocationIn] = Field(default_factory=list)


class CombinedBlockOut(CombinedBlockIn):
    model_config = {"from_attributes": True}
