"""Base schema"""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with ORM support"""
    model_config = ConfigDict(from_attributes=True)
