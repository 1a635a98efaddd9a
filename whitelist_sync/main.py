"""Whitelist Sync - command line entry point.

Maintainer tool for the sale contract whitelist:
  update-whitelist   push approved sheet rows to the contract, mark them synced
  disable-whitelist  switch the contract's whitelist off
  lookup             show the sheet status of one address
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from whitelist_sync.bridges import HttpRecordStoreClient, Web3LedgerClient
from whitelist_sync.core.config import DEFAULT_SECRET_FILE, Settings, load_settings
from whitelist_sync.core.exceptions import WhitelistSyncError, WriteBackFailed
from whitelist_sync.services.confirmation import auto_approve, auto_decline, prompt_confirmation
from whitelist_sync.services.reconciliation import ReconciliationEngine, disable_whitelist

logger = logging.getLogger("whitelist_sync")

ACTIONS = ("update-whitelist", "disable-whitelist", "lookup")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_DIVERGED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whitelist-sync",
        description="Sync approved whitelist applications to the SellingController contract.",
    )
    parser.add_argument("--action", required=True, type=str.lower, choices=ACTIONS)
    parser.add_argument(
        "-s", "--secret-file",
        type=Path,
        default=DEFAULT_SECRET_FILE,
        help="JSON secrets file (default: %(default)s)",
    )
    parser.add_argument("--address", help="Address to look up (lookup only)")

    gate = parser.add_mutually_exclusive_group()
    gate.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Continue past invalid addresses without asking",
    )
    gate.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt; abort if any invalid addresses are found",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _record_store(settings: Settings) -> HttpRecordStoreClient:
    return HttpRecordStoreClient(
        settings.LAMBDA_URL,
        settings.SECRET_COOKIE.get_secret_value(),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


async def _update(settings: Settings, args: argparse.Namespace) -> int:
    if args.yes:
        confirm = auto_approve
    elif args.no_input:
        confirm = auto_decline
    else:
        confirm = prompt_confirmation()

    engine = ReconciliationEngine(
        record_store=_record_store(settings),
        ledger=Web3LedgerClient.from_settings(settings),
        confirm=confirm,
        batch_cap=settings.BATCH_CAP,
        gas_price_margin_percent=settings.GAS_PRICE_MARGIN_PERCENT,
    )
    result = await engine.reconcile()

    logger.info(f"Run finished: {result.state.value}")
    if result.tx_hash:
        logger.info(f"  tx {result.tx_hash} synced rows {result.submitted_rows}")
    if result.issues:
        logger.info(f"  invalid addresses on lines {[i.line for i in result.issues]}")
    if result.deferred_rows:
        logger.info(f"  {len(result.deferred_rows)} row(s) deferred to the next run")
    return EXIT_OK


async def _disable(settings: Settings) -> int:
    ledger = Web3LedgerClient.from_settings(settings)
    confirmation = await disable_whitelist(ledger, settings.GAS_PRICE_MARGIN_PERCENT)
    logger.info(f"Whitelist disabled in tx {confirmation.tx_hash}")
    return EXIT_OK


async def _lookup(settings: Settings, address: str) -> int:
    rows = await _record_store(settings).find_rows(address)
    if not rows:
        logger.info(f"No applications found for {address}")
    for row in rows:
        logger.info(f"line {row.line}: approved={row.approved} synced={row.synced}")
    return EXIT_OK


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.secret_file)

    if args.action == "update-whitelist":
        return await _update(settings, args)
    if args.action == "disable-whitelist":
        return await _disable(settings)
    return await _lookup(settings, args.address)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.action == "lookup" and not args.address:
        parser.error("--address is required for lookup")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except WriteBackFailed as e:
        logger.critical(f"Ledger and sheet are out of sync: {e}")
        return EXIT_DIVERGED
    except WhitelistSyncError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
