"""
Use cases: Data maintenance for operators.

Input: seed credentials, mock data sizes
Output: created/updated counts
Side effects: Inserts users and orders; rewrites legacy columns.
Failure cases: none beyond repository errors; existing rows are skipped.

Backs the ``cryptosim.cli`` commands. Mock orders are written directly
and do not move balances or trader statistics.
"""

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from cryptosim.domain.accounts.entities import (
    LEGACY_UNVERIFIED,
    Role,
    User,
    VerificationStatus,
)
from cryptosim.domain.accounts.ports import PasswordHasher, UserRepository
from cryptosim.domain.clock import utc_now
from cryptosim.domain.trading.entities import (
    AccountType,
    TradeDirection,
    Transaction,
    TransactionStatus,
)
from cryptosim.domain.trading.ports import TransactionRepository
from cryptosim.domain.trading.settlement import (
    compute_expiry,
    compute_spread,
    generate_order_number,
    settle,
)

logger = logging.getLogger(__name__)

MOCK_PASSWORD = "Password123"
MOCK_EMAIL_DOMAIN = "mail.com"
MOCK_DURATIONS = (60, 180, 300, 600, 900, 1800, 3600)
MOCK_HISTORY_DAYS = 30
EIGHT_PLACES = Decimal("0.00000001")
TWO_PLACES = Decimal("0.01")

# Price band per asset used to draw entry prices.
MOCK_PRICE_RANGES: dict[str, tuple[float, float]] = {
    "BTCUSDT": (30000, 70000),
    "ETHUSDT": (1500, 4000),
    "BNBUSDT": (200, 600),
    "SOLUSDT": (20, 200),
    "ADAUSDT": (0.3, 1.5),
    "XRPUSDT": (0.4, 1.2),
    "DOGEUSDT": (0.05, 0.3),
    "DOTUSDT": (4, 30),
    "LINKUSDT": (5, 30),
}


@dataclass(frozen=True)
class MockUserSpec:
    email: str
    display_name: str
    phone_number: str
    roles: tuple[str, ...]
    demo_balance: Decimal
    real_balance: Decimal


MOCK_USERS = tuple(
    MockUserSpec(
        email=f"user{n:03d}@{MOCK_EMAIL_DOMAIN}",
        display_name=f"Trader {n:03d}",
        phone_number=f"1380013{n:04d}",
        roles=("trader", "vip") if n in (3, 7) else ("trader",),
        demo_balance=Decimal(demo),
        real_balance=Decimal(real),
    )
    for n, demo, real in (
        (1, 50000, 1000),
        (2, 30000, 500),
        (3, 100000, 5000),
        (4, 20000, 0),
        (5, 75000, 2000),
        (6, 40000, 800),
        (7, 150000, 10000),
        (8, 60000, 1500),
        (9, 35000, 600),
        (10, 45000, 1200),
    )
)


class DataMaintenanceService:
    """Seeding, mock data and one-off data fixes."""

    def __init__(
        self,
        users: UserRepository,
        transactions: TransactionRepository,
        hasher: PasswordHasher,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._users = users
        self._transactions = transactions
        self._hasher = hasher
        self._rng = rng or random.Random()

    def seed_admin_user(self, email: str, password: str) -> tuple[User, bool]:
        """Ensure a verified trader account holding the admin role exists."""
        existing = self._users.get_by_email(email.lower())
        if existing is not None:
            return existing, False
        user = self._users.add(
            User(
                id=str(uuid.uuid4()),
                email=email.lower(),
                display_name="Administrator",
                password_hash=self._hasher.hash(password),
                roles=[Role.ADMIN.value, Role.TRADER.value],
                verification_status=VerificationStatus.VERIFIED.value,
            )
        )
        logger.info("Seeded admin user id=%s", user.id)
        return user, True

    def create_mock_users(self, password: str = MOCK_PASSWORD) -> int:
        """Insert the fixed set of demo traders, skipping emails already taken."""
        created = 0
        for spec in MOCK_USERS:
            if self._users.get_by_email(spec.email) is not None:
                logger.info("Skipping existing mock user %s", spec.email)
                continue
            now = utc_now()
            logged_in = self._rng.random() > 0.3
            self._users.add(
                User(
                    id=str(uuid.uuid4()),
                    email=spec.email,
                    display_name=spec.display_name,
                    phone_number=spec.phone_number,
                    password_hash=self._hasher.hash(password),
                    roles=list(spec.roles),
                    demo_balance=spec.demo_balance,
                    real_balance=spec.real_balance,
                    verification_status=self._rng.choice(
                        [VerificationStatus.VERIFIED.value, VerificationStatus.PENDING.value]
                    ),
                    last_login_at=(
                        now - timedelta(seconds=self._rng.uniform(0, MOCK_HISTORY_DAYS * 86400))
                        if logged_in
                        else None
                    ),
                    last_login_ip=self._random_ip() if logged_in else None,
                )
            )
            created += 1
        logger.info("Created %d mock users", created)
        return created

    def create_mock_transactions(self, per_user_min: int = 20, per_user_max: int = 50) -> int:
        """Insert random historical orders for every active trader."""
        created = 0
        for user in self._users.list_all():
            if not user.is_active:
                continue
            count = self._rng.randint(per_user_min, per_user_max)
            for _ in range(count):
                self._transactions.add(self._mock_transaction(user))
            created += count
            logger.info("Created %d mock orders for user id=%s", count, user.id)
        return created

    def migrate_verification_status(self) -> int:
        """Rewrite the legacy UNVERIFIED status as PENDING."""
        updated = self._users.replace_verification_status(
            LEGACY_UNVERIFIED, VerificationStatus.PENDING.value
        )
        logger.info("Migrated verification status on %d users", updated)
        return updated

    def backfill_transaction_usernames(self) -> int:
        """Copy the owner's display name onto orders recorded without one."""
        names: dict[str, Optional[str]] = {}
        updated = 0
        for transaction in self._transactions.list_missing_user_name():
            if transaction.user_id not in names:
                owner = self._users.get(transaction.user_id)
                names[transaction.user_id] = owner.display_name if owner else None
            name = names[transaction.user_id]
            if not name:
                continue
            transaction.user_name = name
            self._transactions.save(transaction)
            updated += 1
        logger.info("Backfilled user names on %d orders", updated)
        return updated

    # ── Helpers ──────────────────────────────────────────────────

    def _random_ip(self) -> str:
        return ".".join(str(self._rng.randint(0, 255)) for _ in range(4))

    def _price(self, asset_type: str) -> Decimal:
        low, high = MOCK_PRICE_RANGES[asset_type]
        return Decimal(str(self._rng.uniform(low, high))).quantize(EIGHT_PLACES)

    def _mock_transaction(self, user: User) -> Transaction:
        rng = self._rng
        asset_type = rng.choice(list(MOCK_PRICE_RANGES))
        direction = rng.choice(list(TradeDirection))
        status = rng.choice(list(TransactionStatus))
        account_type = rng.choice(list(AccountType))
        duration = rng.choice(MOCK_DURATIONS)
        entry_time = utc_now() - timedelta(
            seconds=rng.uniform(duration, MOCK_HISTORY_DAYS * 86400)
        )
        expiry_time = compute_expiry(entry_time, duration)
        entry_price = self._price(asset_type)
        if account_type is AccountType.DEMO:
            invest_amount = Decimal(str(rng.uniform(100, 10000))).quantize(TWO_PLACES)
        else:
            invest_amount = Decimal(str(rng.uniform(10, 1000))).quantize(TWO_PLACES)
        return_rate = Decimal(str(rng.uniform(0.7, 0.9))).quantize(Decimal("0.0001"))

        transaction = Transaction(
            id=str(uuid.uuid4()),
            user_id=user.id,
            user_name=user.display_name,
            order_number=generate_order_number(entry_time),
            asset_type=asset_type,
            direction=direction,
            entry_time=entry_time,
            expiry_time=expiry_time,
            duration=duration,
            entry_price=entry_price,
            spread=compute_spread(entry_price),
            invest_amount=invest_amount,
            return_rate=return_rate,
            account_type=account_type,
            status=status,
        )
        if status is TransactionStatus.SETTLED:
            move = Decimal(str(rng.uniform(-0.05, 0.05)))
            exit_price = (entry_price * (1 + move)).quantize(EIGHT_PLACES)
            outcome = settle(direction, entry_price, exit_price, invest_amount, return_rate)
            transaction.exit_price = exit_price
            transaction.current_price = exit_price
            transaction.actual_return = outcome.actual_return.quantize(TWO_PLACES)
            transaction.settled_at = expiry_time
        elif status is TransactionStatus.PENDING:
            transaction.current_price = entry_price
        return transaction
