"""Command line interface for lingokey."""

from __future__ import annotations

import argparse
import asyncio
import json
import pathlib
import sys
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .configuration import LingokeyConfig, get_settings
from .documents import detect_handler
from .errors import (
    ConfigurationError,
    ErrorRecord,
    LingokeyError,
    OverwriteRefusedError,
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from .host import InMemoryHost
from .logger import configure_logging
from .providers import build_provider, generate_translations
from .session import TranslationSession
from .structures import ApplyResult, ScanRecord, TranslationItem


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lingokey",
        description=(
            "Key, preview and apply translations for the text of a design document."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("document", help="Path to the .json scene document.")
        sub.add_argument(
            "-o",
            "--output",
            help="Write the updated document here instead of in place.",
        )
        sub.add_argument(
            "-f",
            "--force",
            action="store_true",
            help="Allow overwriting the output file if it already exists.",
        )
        sub.add_argument(
            "--select",
            nargs="+",
            metavar="ID",
            help="Replace the stored selection with these element ids.",
        )
        return sub

    def add_translation_source(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-l", "--language", required=True, help="Target language code.")
        source = sub.add_mutually_exclusive_group(required=True)
        source.add_argument(
            "-t",
            "--translations",
            help="JSON file with translations ({id: text} or {lang: {id: text}}).",
        )
        source.add_argument(
            "-p",
            "--provider",
            help="Generate translations with this provider (openai, legacy, echo).",
        )
        sub.add_argument("-s", "--source-language", help="Optional source language hint.")
        sub.add_argument("-m", "--model", help="Provider-specific model identifier.")

    scan = add_command("scan", "Key the text elements and list them.")
    scan.add_argument("--json", action="store_true", help="Print records as JSON.")

    add_translation_source(add_command("preview", "Show translated text in place."))
    add_command("revert", "Restore previewed text to the stored originals.")
    add_translation_source(
        add_command("apply", "Duplicate the selection with translated text.")
    )

    store = add_command("store", "Store translations without changing visible text.")
    store.add_argument("-t", "--translations", required=True, help="JSON {lang: {id: text}}.")

    manual = add_command("manual", "Record a manual translation for one element.")
    manual.add_argument("element_id", help="Element id.")
    manual.add_argument("text", help="Translated text.")
    manual.add_argument("-l", "--language", required=True, help="Language code.")

    add_command("clear", "Remove all localisation metadata from the document.")
    return parser


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input document not found. Please provide a readable .json scene document."
        )
    if not input_path.is_file():
        raise LingokeyError("Input path must be a file.")

    if input_path.resolve() == output_path.resolve():
        return
    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists. Rename it or use the overwrite flag."
        )


def load_translation_file(path: pathlib.Path, language: str) -> List[TranslationItem]:
    """Read translation items for ``language`` from a JSON file."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise LingokeyError(f"Could not read translations from {path}: {exc}") from exc

    if isinstance(raw, list):
        return [TranslationItem.from_message(entry) for entry in raw]
    if isinstance(raw, Mapping):
        entries = raw.get(language)
        if isinstance(entries, Mapping):
            raw = entries
        return [
            TranslationItem(str(node_id), str(text))
            for node_id, text in raw.items()
            if not isinstance(text, Mapping)
        ]
    raise LingokeyError(f"Unrecognised translation file layout in {path}.")


def load_store_payload(path: pathlib.Path) -> Dict[str, Dict[str, str]]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise LingokeyError(f"Could not read translations from {path}: {exc}") from exc
    if not isinstance(raw, Mapping) or not all(isinstance(v, Mapping) for v in raw.values()):
        raise LingokeyError("Stored translations must be shaped {lang: {id: text}}.")
    return {
        str(lang): {str(node_id): str(text) for node_id, text in entries.items()}
        for lang, entries in raw.items()
    }


def print_records(records: Iterable[ScanRecord], *, as_json: bool) -> None:
    records = list(records)
    if as_json:
        print(json.dumps([r.to_message() for r in records], ensure_ascii=False, indent=2))
        return
    print(f"{len(records)} text elements")
    for record in records:
        languages = ", ".join(
            f"{lang}{'*' if record.manual_flags.get(lang) else ''}"
            for lang in sorted(record.translations)
        )
        suffix = f"  [{languages}]" if languages else ""
        print(f"  {record.id:<10} {record.key:<40} {record.text!r}{suffix}")


def print_notes(errors: Iterable[ErrorRecord]) -> None:
    messages = [record.message for record in errors]
    if messages:
        print("Notes:")
        for message in messages:
            print(f"  - {message}")


def print_notifications(host: InMemoryHost) -> None:
    for note in host.notifications:
        text = note.message
        if note.error and not text.startswith("Error"):
            text = f"Error: {text}"
        print(text)


async def _resolve_items(
    session: TranslationSession,
    args: argparse.Namespace,
    settings: LingokeyConfig,
) -> List[Dict[str, Any]]:
    if args.translations:
        items = load_translation_file(pathlib.Path(args.translations), args.language)
    else:
        provider = build_provider(
            args.provider, settings=settings, debug=settings.LINGOKEY_PROVIDER_DEBUG
        )
        records = await session.dispatch({"type": "scan"})
        items = generate_translations(
            records,
            provider,
            target_language=args.language,
            source_language=args.source_language,
            model=args.model or settings.LINGOKEY_MODEL,
        )
    return [{"id": item.id, "translatedText": item.translated_text} for item in items]


async def run_command(
    session: TranslationSession,
    args: argparse.Namespace,
    settings: LingokeyConfig,
) -> int:
    """Translate parsed arguments into session commands; returns an exit code."""

    command = args.command
    if command == "scan":
        records = await session.dispatch({"type": "scan"})
        print_records(records, as_json=args.json)
    elif command in {"preview", "apply"}:
        items = await _resolve_items(session, args, settings)
        message_type = "preview-translation" if command == "preview" else "apply-translation"
        result = await session.dispatch(
            {"type": message_type, "translations": items, "language": args.language}
        )
        if result is not None:
            print_notes(result.errors)
        if command == "apply":
            if not isinstance(result, ApplyResult):
                return 1
            print(
                f"Created {len(result.clones)} copies, "
                f"{len(result.relinked)} text elements translated."
            )
            if not result.ok:
                return 1
    elif command == "revert":
        result = await session.dispatch({"type": "revert-preview"})
        print_notes(result.errors)
    elif command == "store":
        payload = load_store_payload(pathlib.Path(args.translations))
        written = await session.dispatch({"type": "store-translations", "data": payload})
        print(f"Stored {written} translations.")
    elif command == "manual":
        saved = await session.dispatch(
            {
                "type": "update-manual-translation",
                "id": args.element_id,
                "lang": args.language,
                "text": args.text,
            }
        )
        if not saved:
            print(f"Element {args.element_id} not found.")
            return 1
    elif command == "clear":
        await session.dispatch({"type": "clear-storage"})
    return 0


def execute_command(args: argparse.Namespace, settings: LingokeyConfig) -> tuple[int, str | None]:
    """Load the document, run one command, and save the result."""

    input_path = pathlib.Path(args.document).expanduser().resolve()
    output_path = (
        pathlib.Path(args.output).expanduser().resolve() if args.output else input_path
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=args.force)
        _, handler = detect_handler(input_path)
        host = handler.host
        if args.select:
            host.select_ids(args.select)
        session = TranslationSession.from_settings(host, settings)
        exit_code = asyncio.run(run_command(session, args, settings))
    except FileNotFoundError as exc:
        return 1, str(exc)
    except (TranslationProviderConfigurationError, TranslationProviderError) as exc:
        return 1, str(exc)
    except LingokeyError as exc:
        return 1, str(exc)

    print_notifications(host)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    handler.save(output_path)
    return exit_code, None


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(exc)
        return 1

    configure_logging("DEBUG" if args.verbose else settings.LINGOKEY_LOG_LEVEL)

    exit_code, message = execute_command(args, settings)
    if message:
        print(message)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
