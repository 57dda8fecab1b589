"""
Task model shared by the HTTP layer and the store.
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class Task(BaseModel):
    """A single item in the organizer.

    Missing fields and JSON nulls decode to their zero value and unknown
    fields are ignored, but a value of the wrong JSON type is rejected.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    id: str = Field(default="", description="Store-assigned identifier, always text")
    title: str = Field(default="", description="Task title")
    description: str = Field(default="", description="Task description")
    priority: int = Field(default=0, description="Priority, unconstrained")
    start: str = Field(default="", description="Range start, stored verbatim")
    end: str = Field(default="", description="Range end, stored verbatim")

    @model_validator(mode="before")
    @classmethod
    def null_body_is_empty_task(cls, data):
        if data is None:
            return {}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def null_is_zero_value(cls, value, info: ValidationInfo):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value
