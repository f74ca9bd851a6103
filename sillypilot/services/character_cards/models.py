"""
Character Card Data Models
=========================

Pydantic models for the V2 card wire schema (snake_case, embedded JSON and
remote repositories) and the application character record (camelCase UI keys).
"""

from enum import Enum
from typing import Optional, Dict, List, Any, Literal, Union, ClassVar
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ===========================
# Wire Format (V2 cards)
# ===========================

class CardSpec(str, Enum):
    """Supported card specification."""
    V2 = "chara_card_v2"


CARD_SPEC_V2 = CardSpec.V2.value
CARD_SPEC_VERSION = "2.0"

_STRING_FIELDS = (
    "name", "description", "personality", "scenario", "first_mes", "avatar",
    "mes_example", "system_prompt", "post_history_instructions",
    "creator_notes", "character_version", "creator",
)
_LIST_FIELDS = ("tags", "alternate_greetings")
_MAPPING_FIELDS = ("character_book", "extensions")


class CharacterCardData(BaseModel):
    """V2 card data payload. Absent or null fields become empty values; numbers in text fields become strings."""

    model_config = ConfigDict(extra="ignore")

    # Cards in the wild carry numbers in text fields, e.g. character_version: 2
    coerce_numbers: ClassVar[bool] = True

    name: str = ""
    description: str = ""
    personality: str = ""
    scenario: str = ""
    first_mes: str = ""
    avatar: str = ""

    mes_example: str = ""
    system_prompt: str = ""
    post_history_instructions: str = ""
    creator_notes: str = ""
    character_version: str = ""
    tags: List[str] = Field(default_factory=list)
    creator: str = ""
    alternate_greetings: List[str] = Field(default_factory=list)
    character_book: Dict[str, Any] = Field(default_factory=dict)
    extensions: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, values: Any) -> Any:
        """Replace nulls with empty values and apply the legacy greeting fallback."""
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for key in _STRING_FIELDS + _LIST_FIELDS + _MAPPING_FIELDS:
            if key in values and values[key] is None:
                del values[key]
        if cls.coerce_numbers:
            for key in _STRING_FIELDS:
                value = values.get(key)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    values[key] = str(value)
        # Older cards carry the greeting under its V1 name
        if not values.get("first_mes") and isinstance(values.get("greeting"), str):
            values["first_mes"] = values["greeting"]
        return values


class CharacterCard(BaseModel):
    """A V2 card, as embedded in a PNG."""

    model_config = ConfigDict(extra="ignore")

    spec: Literal["chara_card_v2"] = CARD_SPEC_V2
    spec_version: str = CARD_SPEC_VERSION
    data: CharacterCardData

    # Image the card was read from; not part of the embedded JSON
    avatar_uri: str = Field(default="", exclude=True)

    @field_validator("spec_version", mode="before")
    @classmethod
    def coerce_spec_version(cls, v: Any) -> str:
        if v is None:
            return CARD_SPEC_VERSION
        return str(v)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict of the embedded payload."""
        return self.model_dump(mode="json")


# ===========================
# Application Record
# ===========================

class CharacterData(BaseModel):
    """In-app character fields, serialized with camelCase UI keys."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    avatar: str = ""
    description: str = ""
    personality: str = ""
    scenario: str = ""
    first_message: str = Field(default="", alias="firstMessage")
    system_prompt: str = Field(default="", alias="systemPrompt")
    creator_notes: str = Field(default="", alias="creatorNotes")
    tags: List[str] = Field(default_factory=list)
    status: Literal["online", "offline"] = "online"
    mood: str = "Cheerful"

    # Backend compatibility fields (wire names)
    mes_example: str = ""
    post_history_instructions: str = ""
    alternate_greetings: List[str] = Field(default_factory=list)
    character_book: Dict[str, Any] = Field(default_factory=dict)
    creator: str = ""
    character_version: str = ""
    extensions: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def accept_wire_names(cls, values: Any) -> Any:
        """Accept backend payloads that use wire names for the UI fields.

        system_prompt and creator_notes already match the field names, so only
        first_mes needs translating.
        """
        if not isinstance(values, dict):
            return values
        values = {k: v for k, v in values.items() if v is not None}
        if "firstMessage" not in values and "first_message" not in values and "first_mes" in values:
            values["firstMessage"] = values["first_mes"]
        return values


class Character(BaseModel):
    """Application character record."""

    id: Union[str, int]
    data: CharacterData

    def to_dict(self) -> Dict[str, Any]:
        """UI shape (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)

    def to_backend_payload(self) -> Dict[str, Any]:
        """UI shape plus the wire-named duplicates the chat backend reads."""
        payload = self.to_dict()
        payload["data"]["first_mes"] = self.data.first_message
        payload["data"]["system_prompt"] = self.data.system_prompt
        payload["data"]["creator_notes"] = self.data.creator_notes
        return payload


# ===========================
# Remote Repository
# ===========================

class RepositoryMetadata(BaseModel):
    """Repository description block."""
    name: str
    description: str
    version: str
    author: str
    website: Optional[str] = None


class RepositoryCharacterData(CharacterCardData):
    """Repository records must spell out the core fields."""

    coerce_numbers: ClassVar[bool] = False

    name: str
    description: str
    personality: str
    scenario: str
    first_mes: str
    avatar: str


class RepositoryCharacter(BaseModel):
    """One character entry of a remote repository."""

    model_config = ConfigDict(extra="ignore")

    spec: Literal["chara_card_v2"]
    data: RepositoryCharacterData
    id: str
    created_at: str
    updated_at: str


class RepositoryResponse(BaseModel):
    """Complete repository document."""
    metadata: RepositoryMetadata
    characters: List[RepositoryCharacter]


# ===========================
# Import DTOs
# ===========================

class CardImportResult(BaseModel):
    """Result of importing a PNG: either a card, or a plain avatar image."""

    character: Optional[Character] = None
    card: Optional[CharacterCard] = None
    image_data: bytes
    is_card: bool
    warnings: List[str] = Field(default_factory=list)
