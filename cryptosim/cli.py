"""
Operator command line.

Usage:
    # Create the tables
    python -m cryptosim.cli init-db

    # Seed the admin trader from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD
    python -m cryptosim.cli seed

    # Create a back-office operator
    python -m cryptosim.cli create-admin --username ops --password secret123

    # Reset a trader password
    python -m cryptosim.cli reset-password user001@mail.com NewPassword1

    # Demo data
    python -m cryptosim.cli create-mock-users
    python -m cryptosim.cli create-mock-transactions --min 5 --max 10

    # Data fixes
    python -m cryptosim.cli migrate-verification-status
    python -m cryptosim.cli backfill-transaction-usernames

    # Settle every expired order once
    python -m cryptosim.cli auto-settle

    # Run the API
    python -m cryptosim.cli serve --port 8000
"""

import argparse
import logging
import sys
from typing import Optional

from sqlalchemy.orm import Session

from cryptosim.application.accounts.admin_accounts import AdminAccountService
from cryptosim.application.accounts.dtos import CreateAdminCommand
from cryptosim.application.accounts.user_administration import UserAdministrationService
from cryptosim.application.maintenance import DataMaintenanceService
from cryptosim.core.config import settings
from cryptosim.core.database import init_db, session_scope
from cryptosim.domain.errors import DomainError
from cryptosim.infrastructure.accounts.admin_repository import AdminRepositoryAdapter
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter
from cryptosim.infrastructure.trading.transaction_repository import (
    TransactionRepositoryAdapter,
)
from cryptosim.interfaces.dependencies import (
    get_exchange_client,
    get_image_storage,
    get_password_hasher,
)
from cryptosim.interfaces.trading.dependencies import build_auto_settle
from cryptosim.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def _maintenance(session: Session) -> DataMaintenanceService:
    return DataMaintenanceService(
        users=UserRepositoryAdapter(session),
        transactions=TransactionRepositoryAdapter(session),
        hasher=get_password_hasher(),
    )


def cmd_init_db(args: argparse.Namespace) -> None:
    init_db()


def cmd_seed(args: argparse.Namespace) -> None:
    """Create the admin trader account unless it exists."""
    init_db()
    with session_scope() as session:
        user, created = _maintenance(session).seed_admin_user(
            settings.seed_admin_email, settings.seed_admin_password
        )
    if created:
        logger.info("Admin user %s created.", user.email)
    else:
        logger.info("Admin user %s already exists.", user.email)


def cmd_create_admin(args: argparse.Namespace) -> None:
    with session_scope() as session:
        service = AdminAccountService(AdminRepositoryAdapter(session), get_password_hasher())
        admin, created = service.ensure_admin(
            CreateAdminCommand(
                username=args.username,
                password=args.password,
                email=args.email,
                display_name=args.display_name,
            )
        )
    if created:
        logger.info("Operator %s created.", admin.username)
    else:
        logger.warning("Operator %s already exists; nothing changed.", admin.username)


def cmd_reset_password(args: argparse.Namespace) -> None:
    with session_scope() as session:
        service = UserAdministrationService(
            UserRepositoryAdapter(session), get_password_hasher(), get_image_storage()
        )
        user = service.reset_password_by_email(args.email, args.password)
    logger.info("Password reset for %s.", user.email)


def cmd_create_mock_users(args: argparse.Namespace) -> None:
    with session_scope() as session:
        created = _maintenance(session).create_mock_users()
    logger.info("Mock users created: %d.", created)


def cmd_create_mock_transactions(args: argparse.Namespace) -> None:
    if args.min > args.max:
        logger.error("--min must not exceed --max.")
        sys.exit(2)
    with session_scope() as session:
        created = _maintenance(session).create_mock_transactions(args.min, args.max)
    if created == 0:
        logger.warning("No active users found; create users first.")
    else:
        logger.info("Mock orders created: %d.", created)


def cmd_migrate_verification_status(args: argparse.Namespace) -> None:
    with session_scope() as session:
        updated = _maintenance(session).migrate_verification_status()
    logger.info("Users migrated: %d.", updated)


def cmd_backfill_transaction_usernames(args: argparse.Namespace) -> None:
    with session_scope() as session:
        updated = _maintenance(session).backfill_transaction_usernames()
    logger.info("Orders updated: %d.", updated)


def cmd_auto_settle(args: argparse.Namespace) -> None:
    with session_scope() as session:
        result = build_auto_settle(session, get_exchange_client()).execute()
    logger.info("Auto-settle: settled=%d failed=%d.", result.settled, result.failed)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    logger.info("Starting API at http://%s:%d", args.host, args.port)
    uvicorn.run("cryptosim.main:app", host=args.host, port=args.port, reload=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CryptoSim operator CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create missing tables").set_defaults(
        func=cmd_init_db
    )
    subparsers.add_parser("seed", help="Seed the admin trader account").set_defaults(
        func=cmd_seed
    )

    admin_parser = subparsers.add_parser("create-admin", help="Create an operator account")
    admin_parser.add_argument("--username", required=True)
    admin_parser.add_argument("--password", required=True)
    admin_parser.add_argument("--email", default=None)
    admin_parser.add_argument("--display-name", default=None, dest="display_name")
    admin_parser.set_defaults(func=cmd_create_admin)

    reset_parser = subparsers.add_parser("reset-password", help="Reset a trader password")
    reset_parser.add_argument("email")
    reset_parser.add_argument("password")
    reset_parser.set_defaults(func=cmd_reset_password)

    subparsers.add_parser(
        "create-mock-users", help="Insert demo trader accounts"
    ).set_defaults(func=cmd_create_mock_users)

    mock_tx_parser = subparsers.add_parser(
        "create-mock-transactions", help="Insert random orders for every active trader"
    )
    mock_tx_parser.add_argument("--min", type=int, default=20, help="Orders per user, lower bound")
    mock_tx_parser.add_argument("--max", type=int, default=50, help="Orders per user, upper bound")
    mock_tx_parser.set_defaults(func=cmd_create_mock_transactions)

    subparsers.add_parser(
        "migrate-verification-status", help="Rewrite UNVERIFIED users as PENDING"
    ).set_defaults(func=cmd_migrate_verification_status)

    subparsers.add_parser(
        "backfill-transaction-usernames", help="Fill missing user names on orders"
    ).set_defaults(func=cmd_backfill_transaction_usernames)

    subparsers.add_parser(
        "auto-settle", help="Settle every expired pending order"
    ).set_defaults(func=cmd_auto_settle)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    configure_logging(level=settings.log_level)
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except DomainError as exc:
        logger.error("%s", exc.message)
        sys.exit(1)


if __name__ == "__main__":
    main()
