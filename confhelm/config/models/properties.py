"""Property store configuration models."""

from pydantic import BaseModel, Field, field_validator


class PropertiesConfig(BaseModel):
    """Configuration for the file-backed property store.

    The store never reads a hard-coded path. ``file_property_name`` names a
    framework or environment property whose value is the path of the
    properties file to load.
    """

    file_property_name: str = Field(
        default="confhelm.config.file",
        description="Name of the property holding the backing file path",
    )
    use_environment_fallback: bool = Field(
        default=True,
        description="Fall back to process environment when framework properties lack the name",
    )

    @field_validator("file_property_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("file_property_name must not be blank")
        return value
