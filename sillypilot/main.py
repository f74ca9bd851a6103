"""Main entry point for SillyPilot card maintenance."""

import argparse
import asyncio
import json
import logging
import sys
import io
from pathlib import Path
from typing import Optional, List

from sillypilot.config import ConfigLoader, ConfigLoadError, SystemConfig
from sillypilot.services.character_cards import (
    CardError,
    CharacterCardExporter,
    CharacterCardImporter,
    decode_card,
)
from sillypilot.services.character_repository import CharacterRepositoryClient, RepositoryError
from sillypilot.services.character_store import CharacterStore, CharacterStoreError
from sillypilot.services.file_storage import FileStorage


def setup_logging(debug: bool = False, log_dir: Path = Path("data/debug_logs")):
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO

    # Force UTF-8 encoding for stdout/stderr on Windows
    if sys.platform == 'win32':
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

    handlers = [logging.StreamHandler(sys.stderr)]

    file_handler = None
    log_file = None

    # Add file handler if debug mode is enabled
    if debug:
        from datetime import datetime
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"sillypilot_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(file_handler)

    # Root logger stays at WARNING so library logs stay quiet
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    app_logger = logging.getLogger('sillypilot')
    app_logger.setLevel(level)

    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    if debug:
        logging.getLogger(__name__).info(f"[STARTUP] Debug log file: {log_file}")

    return file_handler, log_file


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sillypilot", description="Character card tools")
    parser.add_argument("--config-dir", type=Path, default=Path("."), help="Directory containing config/system.yaml")
    parser.add_argument("--debug", action="store_true", help="Verbose logging to stderr and a log file")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect_cmd = sub.add_parser("inspect", help="Print the card embedded in a PNG")
    inspect_cmd.add_argument("image", help="PNG file path")

    import_cmd = sub.add_parser("import", help="Import a PNG card into the character store")
    import_cmd.add_argument("image", help="PNG file path")
    import_cmd.add_argument("--name", help="Override the character name")

    export_cmd = sub.add_parser("export", help="Export a stored character as a PNG card")
    export_cmd.add_argument("character_id")
    export_cmd.add_argument("--output-dir", type=Path, help="Directory for the card (default: configured exports dir)")

    sub.add_parser("list", help="List stored characters")

    browse_cmd = sub.add_parser("browse", help="List characters from a remote repository")
    browse_cmd.add_argument("--url", help="Repository URL (default: configured repository.url)")
    browse_cmd.add_argument("--query", help="Search the repository instead of listing it")
    browse_cmd.add_argument("--categories", action="store_true", help="List repository categories")
    return parser


def _inspect(image: str) -> int:
    card = decode_card(FileStorage().read(image), image_uri=image)
    print(json.dumps(card.to_wire(), indent=2, ensure_ascii=False))
    return 0


def _import(config: SystemConfig, store: CharacterStore, image: str, name: Optional[str]) -> int:
    importer = CharacterCardImporter(
        store=store,
        default_status=config.cards.default_status,
        default_mood=config.cards.default_mood,
    )
    result = importer.import_file(image)
    if not result.is_card:
        print(f"{image}: not a character card", file=sys.stderr)
        return 1
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    character = importer.save_character(result, custom_name=name)
    print(f"Imported '{character.data.name}' as {character.id}")
    return 0


def _export(config: SystemConfig, store: CharacterStore, character_id: str, output_dir: Optional[Path]) -> int:
    exporter = CharacterCardExporter(
        exports_dir=config.paths.exports,
        default_avatar_path=config.paths.default_avatar,
        store=store,
        creator=config.cards.creator,
        character_version=config.cards.character_version,
        blank_avatar_size=config.cards.blank_avatar_size,
    )
    path = exporter.export_to_file(store.load(character_id), output_dir)
    print(str(path))
    return 0


def _list(store: CharacterStore) -> int:
    for character in store.list():
        print(f"{character.id}\t{character.data.name}")
    return 0


async def _browse_repository(config: SystemConfig, url: str, query: Optional[str], categories: bool) -> int:
    async with CharacterRepositoryClient(timeout=config.repository.timeout_seconds) as client:
        if categories:
            for category in await client.get_categories(url):
                print(category)
            return 0
        if query is not None:
            characters = await client.search_characters(url, query)
        else:
            metadata, characters = await client.load_repository(url)
            print(f"# {metadata.name} {metadata.version} by {metadata.author}")
    for character in characters:
        print(f"{character.id}\t{character.data.name}")
    return 0


def _browse(config: SystemConfig, url: Optional[str], query: Optional[str], categories: bool) -> int:
    url = url or config.repository.url
    if not url:
        print("No repository URL given and repository.url is not configured", file=sys.stderr)
        return 2
    return asyncio.run(_browse_repository(config, url, query, categories))


def main(argv: Optional[List[str]] = None) -> int:
    """Run a card maintenance command."""
    args = _build_parser().parse_args(argv)

    try:
        config = ConfigLoader(args.config_dir).load_system_config()
    except ConfigLoadError as e:
        print(str(e), file=sys.stderr)
        return 2

    setup_logging(debug=args.debug or config.debug)
    logger = logging.getLogger(__name__)

    try:
        if args.command == "inspect":
            return _inspect(args.image)
        if args.command == "browse":
            return _browse(config, args.url, args.query, args.categories)

        store = CharacterStore(config.paths.characters, config.paths.images)
        if args.command == "import":
            return _import(config, store, args.image, args.name)
        if args.command == "export":
            return _export(config, store, args.character_id, args.output_dir)
        return _list(store)
    except CardError as e:
        logger.debug(f"Card operation failed: {e!r}")
        print(f"{e.user_message}: {e}", file=sys.stderr)
        return 1
    except RepositoryError as e:
        print(str(e), file=sys.stderr)
        return 1
    except (CharacterStoreError, OSError) as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
