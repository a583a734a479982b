"""
Use cases: Referral approval and IB wallets.

Input: AdminContext, referred user id
Output: list[ReferralRecord] / User / list[Wallet]
Side effects: Accepting a referral opens an IB wallet for the referrer
    when it has none. Decisions are logged.
Failure cases:
    - EntityNotFoundError for unknown or non-referred clients.
    - InvalidStatusTransitionError for referrals already decided.
"""

import logging
from dataclasses import replace
from decimal import Decimal

from portal.application.backoffice.activity import ActivityAction, ActivityRecorder
from portal.application.backoffice.dtos import AdminContext, ReferralRecord
from portal.domain.brokerage.entities import (
    ReferralStatus,
    User,
    Wallet,
    WalletType,
    new_id,
    utcnow,
)
from portal.domain.brokerage.errors import EntityNotFoundError, InvalidStatusTransitionError
from portal.domain.brokerage.ports import UserRepository, WalletRepository

logger = logging.getLogger(__name__)


class ListReferralsUseCase:
    def __init__(self, user_repo: UserRepository) -> None:
        self._user_repo = user_repo

    def execute(self, context: AdminContext) -> list[ReferralRecord]:
        records = []
        referrers: dict[str, User | None] = {}
        for user in self._user_repo.list_referred():
            if not context.scope.covers(user):
                continue
            if user.referred_by not in referrers:
                referrers[user.referred_by] = self._user_repo.get(user.referred_by)
            records.append(ReferralRecord(user=user, referrer=referrers[user.referred_by]))
        return records


class ProcessReferralUseCase:
    """Accepts or rejects a Pending referral."""

    def __init__(
        self,
        user_repo: UserRepository,
        wallet_repo: WalletRepository,
        recorder: ActivityRecorder,
        commission_rate: Decimal,
    ) -> None:
        self._user_repo = user_repo
        self._wallet_repo = wallet_repo
        self._recorder = recorder
        self._commission_rate = commission_rate

    def execute(self, context: AdminContext, user_id: str, accept: bool) -> User:
        user = context.scope.ensure_covers(self._user_repo.get(user_id), user_id)
        if user.referred_by is None:
            raise EntityNotFoundError("Referral", user_id)
        target = ReferralStatus.ACCEPTED if accept else ReferralStatus.REJECTED
        if user.referral_status is not ReferralStatus.PENDING:
            raise InvalidStatusTransitionError(
                "referral", user.referral_status.value, target.value
            )

        updated = replace(user, referral_status=target)
        self._user_repo.update(updated)
        if accept:
            self._ensure_ib_wallet(user.referred_by)

        self._recorder.record(
            context,
            ActivityAction.ACCEPT_REFERRAL if accept else ActivityAction.REJECT_REFERRAL,
            "user",
            user.id,
            f"Referral of {user.email} {target.value.lower()}",
            user_id=user.id,
        )
        logger.info("Referral of user %s %s", user.id, target.value.lower())
        return updated

    def _ensure_ib_wallet(self, referrer_id: str) -> None:
        if self._wallet_repo.get_for_user(referrer_id, WalletType.IB) is not None:
            return
        now = utcnow()
        self._wallet_repo.add(
            Wallet(
                id=new_id(),
                user_id=referrer_id,
                wallet_type=WalletType.IB,
                commission_rate=self._commission_rate,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info("IB wallet opened for user %s", referrer_id)


class ListWalletsUseCase:
    def __init__(self, wallet_repo: WalletRepository) -> None:
        self._wallet_repo = wallet_repo

    def execute(self, context: AdminContext) -> list[Wallet]:
        return self._wallet_repo.list_all()
