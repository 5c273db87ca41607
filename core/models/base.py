import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ConfigDict


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MongoModel(BaseModel):
    """Base model for top-level documents (users, shops, exchange requests)."""
    id: str = Field(default_factory=new_id, alias="_id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(populate_by_name=True)

    def to_mongo(self, **kwargs) -> dict:
        """Convert to a dictionary compatible with the document store."""
        exclude_unset = kwargs.pop('exclude_unset', False)
        by_alias = kwargs.pop('by_alias', True)
        # Enums and datetimes as plain values so every store backend can hold them
        mode = kwargs.pop('mode', 'json')

        return self.model_dump(
            exclude_unset=exclude_unset,
            by_alias=by_alias,
            mode=mode,
            **kwargs
        )

    def touch(self):
        self.updated_at = utcnow()
