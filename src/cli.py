"""Operator CLI for credit top-ups and the retention sweep.

Usage examples:
- Grant credits:        python -m src.cli add-credits jane@example.com 100
- Preview a sweep:      python -m src.cli cleanup --dry-run
- Run the sweep:        python -m src.cli cleanup
"""

import argparse
import asyncio

from src.database.connection import get_async_db
from src.modules.billing.ledger import CreditLedgerService
from src.modules.conversion.retention import RetentionService
from src.modules.user.onboarding import UserOnboardingService
from src.utils.logger import setup_logging
from src.utils.settings.app import AppSettings


async def cmd_add_credits(email: str, amount: int, description: str | None) -> int:
    async with get_async_db() as db:
        user = await UserOnboardingService(db).get_user_by_email(email)
        if user is None:
            print(f"User with email {email} not found.")
            print("New users receive their signup credit on first sign-in.")
            return 1

        balance = await CreditLedgerService(db).grant_manual(
            user.id, amount, description
        )

    print(f"Added {amount} credits to {email}")
    print(f"Current balance: {balance} credits")
    return 0


async def cmd_cleanup(dry_run: bool) -> int:
    async with get_async_db() as db:
        result = await RetentionService(db).sweep(dry_run=dry_run)

    verb = "Would delete" if dry_run else "Deleted"
    print(
        f"{verb} {result.total_deleted} conversions "
        f"({result.registered_deleted} registered, {result.anonymous_deleted} anonymous)"
    )
    return 0


def _positive_int(value: str) -> int:
    amount = int(value)
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be positive")
    return amount


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="BillToSheet admin CLI")
    sub = parser.add_subparsers(dest="cmd", required=True)

    add_credits = sub.add_parser("add-credits", help="Grant credits to a user by email")
    add_credits.add_argument("email")
    add_credits.add_argument("amount", type=_positive_int)
    add_credits.add_argument("--description", default=None)

    cleanup = sub.add_parser("cleanup", help="Delete conversions past retention")
    cleanup.add_argument(
        "--dry-run", action="store_true", help="Only count what would be deleted"
    )

    args = parser.parse_args(argv)
    setup_logging(AppSettings().is_production)

    if args.cmd == "add-credits":
        return asyncio.run(cmd_add_credits(args.email, args.amount, args.description))
    elif args.cmd == "cleanup":
        return asyncio.run(cmd_cleanup(args.dry_run))

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
