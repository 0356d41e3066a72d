"""HTTP server settings."""

from pydantic import BaseModel, Field, field_validator


class APIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(
        default=1,
        ge=1,
        description="uvicorn workers; more than one needs Redis for shared locks and limits",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[str]) -> list[str]:
        """Accept "https://a.example, https://b.example" from the environment."""
        if isinstance(value, list):
            return value
        return [part.strip() for part in value.split(",") if part.strip()]
