#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from enjoyrecord.db.session import AsyncSessionLocal, init_models
from enjoyrecord.services.neodb_import import ImportResult, import_from_neodb
from enjoyrecord.services.providers.errors import ProviderError

logger = logging.getLogger("import_neodb_shelves")

TOKEN_ENV = "NEODB_TOKEN"


def _resolve_token(cli_token: str | None, environ: dict[str, str] | None = None) -> str | None:
    environ = os.environ if environ is None else environ
    for raw in (cli_token, environ.get(TOKEN_ENV)):
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
    return None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import every NeoDB shelf (books, movies, tv, games) into the local records table."
    )
    parser.add_argument(
        "--token",
        default=None,
        help=f"NeoDB API token. Falls back to the {TOKEN_ENV} environment variable.",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before importing (SQLite setups without alembic).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log request-level details.")
    return parser.parse_args(argv)


def _print_summary(result: ImportResult) -> None:
    print("NeoDB shelf import complete")
    print(f"total: {result.total}")
    print(f"imported: {result.imported}")
    print(f"skipped: {result.skipped}")


async def _main_async(token: str, *, init_db: bool) -> ImportResult:
    if init_db:
        await init_models()

    async with AsyncSessionLocal() as db:
        try:
            result = await import_from_neodb(db, token)
        except Exception:
            await db.rollback()
            raise
        await db.commit()
        return result


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    token = _resolve_token(args.token)
    if token is None:
        print(f"Missing NeoDB token: pass --token or set {TOKEN_ENV}.", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(_main_async(token, init_db=args.init_db))
    except ProviderError as e:
        logger.error("import failed provider=%s error=%s", e.provider, e.message)
        print(f"NeoDB import failed: {e.message}", file=sys.stderr)
        return 1

    _print_summary(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
