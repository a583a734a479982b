"""
Use case: Client dashboard figures.

Input: user id
Output: DashboardStats
Side effects: None (read-only query).
Failure cases: None.
"""

from portal.domain.brokerage.ports import (
    DepositRepository,
    TradeRepository,
    TradingAccountRepository,
)
from portal.domain.brokerage.statistics import DashboardStats, dashboard_stats


class GetDashboardStatsUseCase:
    """Sums balances over the client's accounts and counts activity."""

    def __init__(
        self,
        account_repo: TradingAccountRepository,
        trade_repo: TradeRepository,
        deposit_repo: DepositRepository,
    ) -> None:
        self._account_repo = account_repo
        self._trade_repo = trade_repo
        self._deposit_repo = deposit_repo

    def execute(self, user_id: str) -> DashboardStats:
        return dashboard_stats(
            accounts=self._account_repo.list_for_user(user_id),
            trades=self._trade_repo.list_for_user(user_id),
            deposits=self._deposit_repo.list_for_user(user_id),
        )
