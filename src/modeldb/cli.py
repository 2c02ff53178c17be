"""modeldb CLI entrypoint."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from modeldb import api
from modeldb._internal.exceptions import ModelDBError
from modeldb.catalog.engine import build_document
from modeldb.catalog.snapshot import write_document
from modeldb.catalog.store import SnapshotStore
from modeldb.core.config.loader import load_config
from modeldb.core.config.schema import ModelDBConfig
from modeldb.sources.packaged import PackagedSource
from modeldb.sources.remote import DEFAULT_URL, RemoteSource
from modeldb.utils.logging import configure_logging, set_component_level


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _load_catalog(args: argparse.Namespace) -> SnapshotStore:
    store = SnapshotStore()
    if args.snapshot:
        api.load([PackagedSource(args.snapshot)], store=store)
    else:
        api.load(config=args.config_obj, store=store)
    return store


def cmd_build(args: argparse.Namespace) -> int:
    options = api.options_from_config(args.config_obj)
    document = build_document(options.sources)
    path = write_document(document, args.output)
    total = sum(len(p["models"]) for p in document["providers"].values())
    print(f"Wrote {len(document['providers'])} providers and {total} models to {path}")
    return 0


def cmd_pull(args: argparse.Namespace) -> int:
    source = RemoteSource(args.url, args.cache_dir)
    path = source.pull()
    if path is None:
        print(f"{args.url}: not modified")
    else:
        print(f"Cached {args.url} to {path}")
    return 0


def cmd_providers(args: argparse.Namespace) -> int:
    store = _load_catalog(args)
    print("Providers:")
    for provider in api.providers(store=store):
        count = len(api.models(provider.id, store=store))
        label = provider.name or provider.id
        print(f"  {provider.id:<20} {label:<24} {count} models")
    return 0


def cmd_models(args: argparse.Namespace) -> int:
    store = _load_catalog(args)
    items = api.models(args.provider, store=store)
    if args.provider:
        print(f"Available {args.provider} models:")
    else:
        print("Available models:")
    for model in items:
        context = f"{model.limits.context:,} ctx" if model.limits and model.limits.context else ""
        print(f"  {api.format_spec(model.key):<45} {context}")
    return 0


def cmd_select(args: argparse.Namespace) -> int:
    store = _load_catalog(args)
    prefer = _split_csv(args.prefer) or None
    require = _split_csv(args.require)
    forbid = _split_csv(args.forbid)
    if args.all:
        keys = list(
            api.candidates(require=require, forbid=forbid, prefer=prefer, scope=args.scope, store=store)
        )
    else:
        first = api.select(require=require, forbid=forbid, prefer=prefer, scope=args.scope, store=store)
        keys = [first] if first is not None else []
    if not keys:
        print("No matching model", file=sys.stderr)
        return 1
    for key in keys:
        print(api.format_spec(key))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modeldb", description="Build and query the LLM provider/model catalog"
    )
    parser.add_argument("--config", help="Path to modeldb.yaml (default: $MODELDB_CONFIG)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    build = subparsers.add_parser("build", help="Write the merged catalog document")
    build.add_argument("-o", "--output", default="snapshot.json", help="Output JSON path")
    build.set_defaults(func=cmd_build)

    pull = subparsers.add_parser("pull", help="Refresh the models.dev cache")
    pull.add_argument("--url", default=DEFAULT_URL)
    pull.add_argument("--cache-dir", default=None)
    pull.set_defaults(func=cmd_pull)

    for name, handler, help_text in (
        ("providers", cmd_providers, "List providers"),
        ("models", cmd_models, "List models"),
        ("select", cmd_select, "Pick a model by capability"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--snapshot", help="Read this snapshot document instead of configured sources")
        sub.set_defaults(func=handler)
        if name == "models":
            sub.add_argument("--provider", help="Only list this provider's models")
        if name == "select":
            sub.add_argument("--require", help="Comma-separated capabilities that must hold")
            sub.add_argument("--forbid", help="Comma-separated capabilities that must not hold")
            sub.add_argument("--prefer", help="Comma-separated provider preference order")
            sub.add_argument("--scope", help="Restrict to one provider")
            sub.add_argument("--all", action="store_true", help="Print every candidate in order")
    return parser


def _apply_logging(config: ModelDBConfig, verbose: bool) -> None:
    configure_logging(verbose=verbose, level=None if verbose else config.logging.level)
    for component, level in config.logging.components.items():
        set_component_level(component, level)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code for the shell
            - 0: Success
            - 1: Error or no matching model
            - 2: Incorrect usage (shows help)
            - 130: Interrupted by user (Ctrl+C)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    try:
        args.config_obj = load_config(args.config)
        _apply_logging(args.config_obj, args.verbose)
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except ModelDBError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
