from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case names also accepted."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageOut(CamelModel):
    success: bool = True
    message: str


class InsertedOut(MessageOut):
    inserted_id: int | None = None


class DeletedOut(MessageOut):
    deleted_count: int
