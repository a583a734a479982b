"""
Use case: Introducing-broker statistics for a client.

Input: user id
Output: IbStats
Side effects: None (read-only query).
Failure cases: EntityNotFoundError if the client no longer exists.

Commission on a referral is estimated from its completed deposits at
the wallet's rate (or the default rate while no wallet exists).
"""

from decimal import Decimal

from portal.application.brokerage.dtos import IbStats, ReferredClient
from portal.application.brokerage.lookups import require_user
from portal.domain.brokerage.entities import (
    ZERO,
    DepositStatus,
    ReferralStatus,
    WalletType,
    to_money,
)
from portal.domain.brokerage.ports import DepositRepository, UserRepository, WalletRepository


class GetIbStatsUseCase:
    def __init__(
        self,
        user_repo: UserRepository,
        deposit_repo: DepositRepository,
        wallet_repo: WalletRepository,
        default_rate: Decimal,
    ) -> None:
        self._user_repo = user_repo
        self._deposit_repo = deposit_repo
        self._wallet_repo = wallet_repo
        self._default_rate = default_rate

    def execute(self, user_id: str) -> IbStats:
        user = require_user(self._user_repo, user_id)
        wallet = self._wallet_repo.get_for_user(user.id, WalletType.IB)
        rate = wallet.commission_rate if wallet is not None else self._default_rate

        referrals = []
        pending_commission = ZERO
        for referred in self._user_repo.list_referred(referrer_id=user.id):
            total = to_money(
                sum(
                    (
                        d.amount
                        for d in self._deposit_repo.list_for_user(referred.id)
                        if d.status is DepositStatus.COMPLETED
                    ),
                    ZERO,
                )
            )
            commission = to_money(total * rate)
            if referred.referral_status is ReferralStatus.PENDING:
                pending_commission += commission
            referrals.append(
                ReferredClient(user=referred, total_deposits=total, commission=commission)
            )

        return IbStats(
            referral_id=user.referral_id,
            wallet=wallet,
            referrals=tuple(referrals),
            total_referrals=len(referrals),
            active_referrals=sum(
                1
                for r in referrals
                if r.user.referral_status is ReferralStatus.ACCEPTED and r.user.enabled
            ),
            total_commission=wallet.total_commission if wallet is not None else ZERO,
            pending_commission=to_money(pending_commission),
        )
