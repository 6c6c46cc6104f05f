"""Base model configuration for all Pydantic models."""

from pydantic import BaseModel, ConfigDict


class TourismBaseModel(BaseModel):
    """Base model with common configuration.

    Conventions:
    - All timestamps are ISO 8601 format with timezone (UTC preferred)
    - Report IDs are UUID v4; visit history IDs are integers
    - Field names are lowercase snake_case
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )
