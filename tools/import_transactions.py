"""Import a bank export into a household's ledger from the command line.

    python tools/import_transactions.py statement.csv --household <uuid>
    python tools/import_transactions.py export.xlsx --household <uuid> --dry-run

Uses the same mapping guess and reconciler as the API. Without --dry-run it
writes through a service-role Supabase client (SUPABASE_URL and
SUPABASE_SERVICE_KEY from the environment or .env).
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

from apps.api.core.logging import setup_logging
from apps.api.domains.ingestion.service import commit_file, preview_file
from packages.import_engine.errors import LedgerError
from packages.import_engine.memory import in_memory_stores
from packages.import_engine.stores import LedgerStores

ROLES = ("date", "description", "amount", "debit", "credit")


async def _stores(dry_run: bool) -> LedgerStores:
    if dry_run:
        return in_memory_stores()

    from apps.api.core.auth import get_service_client
    from apps.api.storage.supabase_store import supabase_stores

    return supabase_stores(await get_service_client())


async def ingest_file(args: argparse.Namespace) -> int:
    with open(args.file, "rb") as f:
        content = f.read()
    filename = os.path.basename(args.file)

    preview = preview_file(content, filename, password=args.password, limit=0)
    print(f"📂 {filename}: {preview['row_count']} rows")
    print(f"   Columns found: {preview['headers']}")

    overrides = {role: getattr(args, role) for role in ROLES}
    stores = await _stores(args.dry_run)
    report = await commit_file(
        stores,
        args.household,
        content,
        filename,
        overrides=overrides,
        password=args.password,
        negatives_are_spend=args.negatives_are_spend,
    )

    counts = report.to_dict()
    label = "Dry run" if args.dry_run else "Import complete"
    print(f"✅ {label}: added {counts['added']}, skipped {counts['skipped']}")
    print(
        f"   duplicates {counts['duplicates']}, not spend {counts['rejected']}, "
        f"bad date {counts['unparseable']}, failed {counts['failed']}"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a CSV/Excel bank export")
    parser.add_argument("file", help="Path to CSV/Excel file")
    parser.add_argument("--household", required=True, help="Target household id")
    parser.add_argument("--password", help="Password for an encrypted workbook")
    parser.add_argument("--dry-run", action="store_true", help="Parse and reconcile without writing")
    for role in ROLES:
        parser.add_argument(f"--{role}", metavar="COLUMN", help=f"Header holding the {role}")

    sign = parser.add_mutually_exclusive_group()
    sign.add_argument(
        "--negatives-are-spend",
        dest="negatives_are_spend",
        action="store_true",
        default=None,
        help="Negative single amounts are spending (default: household setting)",
    )
    sign.add_argument(
        "--positives-are-spend",
        dest="negatives_are_spend",
        action="store_false",
        help="Positive single amounts are spending",
    )
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(log_level=os.environ.get("LOG_LEVEL", "WARNING"), json_output=False)

    if not os.path.exists(args.file):
        print(f"❌ File not found: {args.file}")
        return 1

    try:
        return asyncio.run(ingest_file(args))
    except LedgerError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
