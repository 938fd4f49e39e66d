"""Entrypoint: manage AI providers and run taxonomy fetches."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from taxonomy_fetch.config import load_settings
from taxonomy_fetch.kinds import ItemKind, parse_kind
from taxonomy_fetch.llm.registry import (
    activate_provider,
    add_provider,
    deactivate_provider,
    provider_diagnostics,
    update_provider,
)
from taxonomy_fetch.models import apply_migrations, get_connection, list_fetch_logs
from taxonomy_fetch.orchestrator import (
    fetch_and_save_boards,
    fetch_and_save_chapters,
    fetch_and_save_papers,
    fetch_and_save_subjects,
    fetch_and_save_universities,
    fetch_streams,
    fetch_structure,
    generate_and_save_mcqs,
    generate_mcqs,
)

SUBJECT_SCOPE_OPTIONS = ("board_id", "class_id", "stream_id", "university_id", "semester_id", "category_id")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI-backed education taxonomy fetcher")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("init-db", help="Apply SQLite migrations only")
    subparsers.add_parser("providers", help="List configured AI providers (no keys)")
    subparsers.add_parser("logs", help="Show the latest fetch attempts")

    add = subparsers.add_parser("add-provider", help="Register an AI provider")
    add.add_argument("name")
    add.add_argument("--base-url", required=True)
    add.add_argument("--model", required=True)
    add.add_argument("--api-key", default=None)
    add.add_argument("--dialect", choices=["chat_completion", "generate_content"], default=None)
    add.add_argument("--activate", action="store_true")

    update = subparsers.add_parser("update-provider", help="Edit a provider's name, URL, model or key")
    update.add_argument("provider_id", type=int)
    update.add_argument("--name", default=None)
    update.add_argument("--base-url", default=None)
    update.add_argument("--model", default=None)
    update.add_argument("--api-key", default=None)
    update.add_argument("--dialect", choices=["chat_completion", "generate_content"], default=None)

    act = subparsers.add_parser("activate-provider", help="Make one provider the only active one")
    act.add_argument("provider_id", type=int)

    deact = subparsers.add_parser("deactivate-provider", help="Turn a provider off")
    deact.add_argument("provider_id", type=int)

    fetch = subparsers.add_parser("fetch", help="Fetch a structure list")
    fetch.add_argument("kind", help="boards, universities, papers, streams, subjects, chapters, structure")
    fetch.add_argument("--context", required=True)
    fetch.add_argument("--count", type=int, default=None)
    fetch.add_argument("--label", default=None, help="Item label for generic structures")
    fetch.add_argument(
        "--save",
        action="store_true",
        help="Persist results (boards, universities, papers, chapters, subjects, streams)",
    )
    fetch.add_argument("--parent-id", type=int, default=None, help="state/category/subject id when saving")
    for option in SUBJECT_SCOPE_OPTIONS:
        fetch.add_argument(f"--{option.replace('_', '-')}", type=int, default=None, help="subject scope when saving")

    mcq = subparsers.add_parser("mcq", help="Generate MCQs for a topic")
    mcq.add_argument("--topic", required=True)
    mcq.add_argument("--count", type=int, default=None)
    mcq.add_argument("--save", action="store_true")
    return parser


def _print(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _save_fetch(conn, config, args) -> dict:
    kind = parse_kind(args.kind)
    if kind is ItemKind.BOARDS:
        return fetch_and_save_boards(conn, config, args.parent_id, args.context, count=args.count)
    if kind is ItemKind.UNIVERSITIES:
        return fetch_and_save_universities(conn, config, args.parent_id, args.context, count=args.count)
    if kind is ItemKind.PAPERS:
        return fetch_and_save_papers(conn, config, args.parent_id, args.context, count=args.count)
    if kind is ItemKind.CHAPTERS:
        return fetch_and_save_chapters(conn, config, args.parent_id, args.context, count=args.count)
    if kind is ItemKind.SUBJECTS:
        scope = {option: getattr(args, option) for option in SUBJECT_SCOPE_OPTIONS}
        return fetch_and_save_subjects(conn, config, args.context, scope, count=args.count)
    if kind is ItemKind.STREAMS:
        board, _, class_name = args.context.partition("|")
        return fetch_streams(conn, config, board.strip(), class_name.strip())
    raise SystemExit(f"--save is not supported for kind '{kind.value}'")


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    command = args.command or "providers"

    config = load_settings(args.settings)
    db_path = config["database"]["path"]
    apply_migrations(db_path)

    if command == "init-db":
        print(f"Database initialized at {db_path}")
        return

    with get_connection(db_path) as conn:
        if command == "providers":
            _print(provider_diagnostics(conn))
        elif command == "logs":
            _print(list_fetch_logs(conn))
        elif command == "add-provider":
            provider = add_provider(
                conn,
                name=args.name,
                base_url=args.base_url,
                model_name=args.model,
                api_key=args.api_key,
                dialect=args.dialect,
                config=config,
                activate=args.activate,
            )
            print(f"Provider id={provider.id} dialect={provider.dialect.value} active={provider.is_active}")
        elif command == "update-provider":
            provider = update_provider(
                conn,
                args.provider_id,
                name=args.name,
                base_url=args.base_url,
                model_name=args.model,
                api_key=args.api_key,
                dialect=args.dialect,
                config=config,
            )
            if provider is None:
                raise SystemExit(f"Provider not found: {args.provider_id}")
            print(f"Provider id={provider.id} name={provider.name} dialect={provider.dialect.value}")
        elif command == "activate-provider":
            provider = activate_provider(conn, args.provider_id)
            if provider is None:
                raise SystemExit(f"Provider not found: {args.provider_id}")
            print(f"Provider {provider.name} is now the active provider")
        elif command == "deactivate-provider":
            provider = deactivate_provider(conn, args.provider_id)
            if provider is None:
                raise SystemExit(f"Provider not found: {args.provider_id}")
            print(f"Provider {provider.name} is now inactive")
        elif command == "fetch":
            if args.save:
                _print(_save_fetch(conn, config, args))
            else:
                _print(fetch_structure(conn, config, args.kind, args.context, args.count, label=args.label))
        elif command == "mcq":
            if args.save:
                _print(generate_and_save_mcqs(conn, config, args.topic, args.count))
            else:
                _print(generate_mcqs(conn, config, args.topic, args.count))


if __name__ == "__main__":
    main()
