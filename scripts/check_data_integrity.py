"""Check stored catalog data for invariant violations.

Checks: videos without a site or pointing at a missing site, videos whose
owner does not exist, invalid platforms, negative counters, untitled videos,
duplicate user emails, and that at least one active admin exists.

Usage:
    python -m scripts.check_data_integrity

Requires the store settings in the environment or .env (STORE_BACKEND,
FIREBASE_SERVICE_ACCOUNT_KEY / FIREBASE_SERVICE_ACCOUNT_PATH or
FIRESTORE_EMULATOR_HOST + FIRESTORE_PROJECT_ID). Exits 1 when any check fails.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from catalog.application.data_layer import CatalogDataLayer
from catalog.application.dtos.integrity import IntegrityReport
from catalog.core.config import get_settings
from catalog.shared.telemetry import setup_logging


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _load_env() -> None:
    """Load .env from project root so get_settings() sees store settings when run as script."""
    load_dotenv(_project_root() / ".env", override=True)


def _mark(passed: bool) -> str:
    return "OK" if passed else "FAIL"


def print_report(report: IntegrityReport) -> None:
    rows = [
        ("Videos without site_id", len(report.videos_without_site)),
        ("Videos with missing site", len(report.videos_with_missing_site)),
        ("Videos with missing owner", len(report.videos_with_missing_owner)),
        ("Videos with invalid platform", len(report.videos_with_invalid_platform)),
        ("Videos with negative stats", len(report.videos_with_negative_stats)),
        ("Videos without title", len(report.videos_without_title)),
        ("Duplicate emails", len(report.duplicate_emails)),
    ]
    print("=== Data integrity check ===")
    for i, (label, count) in enumerate(rows, start=1):
        print(f"{i}. {label}: {count} {_mark(count == 0)}")
    for email, count in sorted(report.duplicate_emails.items()):
        print(f"   - {email}: {count} users")
    print(
        f"{len(rows) + 1}. Active admin accounts: {report.active_admin_count} "
        f"{_mark(report.active_admin_count > 0)}"
    )
    print()
    print("All checks passed." if report.ok else "Problems found; fix the data before deploying.")


async def run() -> IntegrityReport:
    async with CatalogDataLayer.from_settings(get_settings()) as data:
        return await data.integrity.run()


def main() -> None:
    _load_env()
    get_settings.cache_clear()
    setup_logging()
    report = asyncio.run(run())
    print_report(report)
    sys.exit(0 if report.ok else 1)


if __name__ == "__main__":
    main()
