"""Pydantic models for configuration validation."""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


class PathsConfig(BaseModel):
    """File path configuration."""

    characters: Path = Path("data/characters")
    images: Path = Path("data/character_images")
    exports: Path = Path("data/exports")
    default_avatar: Path = Path("data/default_avatar.png")

    @field_validator('characters', 'images', 'exports', 'default_avatar')
    @classmethod
    def validate_path(cls, v: Path) -> Path:
        """Ensure paths are cross-platform."""
        return Path(v)


class CardConfig(BaseModel):
    """Character card export and import defaults."""

    creator: str = Field(default="SillyPilot", min_length=1)
    character_version: str = Field(default="1.0.0", min_length=1)
    default_status: str = "online"
    default_mood: str = "Cheerful"
    blank_avatar_size: int = Field(default=512, gt=0, le=4096)

    @field_validator('default_status')
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in ("online", "offline"):
            raise ValueError("default_status must be 'online' or 'offline'")
        return v


class RepositoryConfig(BaseModel):
    """Remote character repository configuration."""

    url: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Ensure URL is properly formatted."""
        if v is None:
            return v
        if not v.startswith(('http://', 'https://')):
            raise ValueError('url must start with http:// or https://')
        return v.rstrip('/')


class SystemConfig(BaseModel):
    """Top-level system configuration."""

    model_config = ConfigDict(extra='ignore')

    paths: PathsConfig = Field(default_factory=PathsConfig)
    cards: CardConfig = Field(default_factory=CardConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    debug: bool = False
