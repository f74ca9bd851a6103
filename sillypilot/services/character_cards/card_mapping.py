"""
Card Mapping
===========

Converts between the V2 card wire schema and the application character record.

Field renaming and defaulting only. Every field absent on one side gets an
explicit default on the other:

    wire                 application
    ----                 -----------
    first_mes            firstMessage
    system_prompt        systemPrompt
    creator_notes        creatorNotes
    (avatar_uri|avatar)  avatar
    -                    status       "online"
    -                    mood         "Cheerful" ("neutral" for repository records)
    alternate_greetings  -            [] on export
    post_history_...     -            "" on export
    extensions           -            {} on export
"""

import uuid
from datetime import datetime
from typing import Optional, Union

from .models import (
    Character,
    CharacterCard,
    CharacterCardData,
    CharacterData,
    RepositoryCharacter,
)

DEFAULT_CREATOR = "SillyPilot"
DEFAULT_CHARACTER_VERSION = "1.0.0"
DEFAULT_STATUS = "online"
DEFAULT_MOOD = "Cheerful"
REPOSITORY_MOOD = "neutral"


def new_character_id() -> str:
    """Fresh id for a character that has none yet."""
    return uuid.uuid4().hex


def card_to_character(
    card: CharacterCard,
    character_id: Optional[str] = None,
    status: str = DEFAULT_STATUS,
    mood: str = DEFAULT_MOOD,
) -> Character:
    """
    Convert a decoded card into an application character.

    Args:
        card: Decoded V2 card
        character_id: Id to assign (a new one is generated when omitted)
        status: Initial presence status
        mood: Initial mood

    Returns:
        Application character record
    """
    data = card.data
    return Character(
        id=character_id or new_character_id(),
        data=CharacterData(
            name=data.name,
            avatar=card.avatar_uri or data.avatar,
            description=data.description,
            personality=data.personality,
            scenario=data.scenario,
            first_message=data.first_mes,
            system_prompt=data.system_prompt,
            creator_notes=data.creator_notes,
            tags=list(data.tags),
            status=status,
            mood=mood,
            mes_example=data.mes_example,
            post_history_instructions=data.post_history_instructions,
            alternate_greetings=list(data.alternate_greetings),
            character_book=dict(data.character_book),
            creator=data.creator,
            character_version=data.character_version,
            extensions=dict(data.extensions),
        ),
    )


def character_to_card_data(
    character: Union[Character, CharacterData],
    creator: str = DEFAULT_CREATOR,
    character_version: str = DEFAULT_CHARACTER_VERSION,
) -> CharacterCardData:
    """
    Build the wire payload exported for an application character.

    Exported cards are stamped with this application as creator; greetings,
    post-history instructions and extensions are exported empty.
    """
    data = character.data if isinstance(character, Character) else character
    return CharacterCardData(
        name=data.name,
        description=data.description,
        personality=data.personality,
        scenario=data.scenario,
        first_mes=data.first_message,
        system_prompt=data.system_prompt,
        creator_notes=data.creator_notes,
        tags=list(data.tags),
        creator=creator,
        character_version=character_version,
        alternate_greetings=[],
        post_history_instructions="",
        extensions={},
    )


def character_to_card(
    character: Union[Character, CharacterData],
    creator: str = DEFAULT_CREATOR,
    character_version: str = DEFAULT_CHARACTER_VERSION,
) -> CharacterCard:
    """Wrap character_to_card_data in a V2 card envelope."""
    return CharacterCard(data=character_to_card_data(character, creator, character_version))


def _format_date(value: str) -> str:
    """Render an ISO timestamp as a date; unparseable values pass through."""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def repository_character_to_character(repo_char: RepositoryCharacter) -> Character:
    """
    Convert a remote repository entry into an application character.

    Repository entries keep their own id and remote avatar URL. Missing creator
    notes are replaced by the entry's creation and update dates.
    """
    data = repo_char.data
    creator_notes = data.creator_notes or (
        f"Created: {_format_date(repo_char.created_at)}\n"
        f"Updated: {_format_date(repo_char.updated_at)}"
    )
    return Character(
        id=repo_char.id,
        data=CharacterData(
            name=data.name,
            avatar=data.avatar,
            description=data.description,
            personality=data.personality,
            scenario=data.scenario,
            first_message=data.first_mes,
            system_prompt=data.system_prompt,
            creator_notes=creator_notes,
            tags=list(data.tags),
            status=DEFAULT_STATUS,
            mood=REPOSITORY_MOOD,
            mes_example="",
            post_history_instructions=data.post_history_instructions,
            alternate_greetings=list(data.alternate_greetings),
            character_book=dict(data.character_book),
            creator=data.creator,
            character_version=data.character_version or DEFAULT_CHARACTER_VERSION,
            extensions=dict(data.extensions),
        ),
    )
