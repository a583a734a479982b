"""
Use cases: Back-office overview statistics and the activity log.

Input: AdminContext
Output: AdminStats / list[ActivityLog]
Side effects: None (read-only queries).
Failure cases: None.

Statistics cover only the clients visible to the admin. Super admins
read the whole activity log; everyone else reads only their own entries.
"""

from portal.application.backoffice.dtos import AdminContext
from portal.domain.brokerage.entities import ActivityLog
from portal.domain.brokerage.ports import (
    ActivityLogRepository,
    DepositRepository,
    DocumentRepository,
    TradingAccountRepository,
    UserRepository,
    WithdrawalRepository,
)
from portal.domain.brokerage.statistics import AdminStats, admin_stats


class AdminStatsUseCase:
    def __init__(
        self,
        user_repo: UserRepository,
        document_repo: DocumentRepository,
        account_repo: TradingAccountRepository,
        deposit_repo: DepositRepository,
        withdrawal_repo: WithdrawalRepository,
    ) -> None:
        self._user_repo = user_repo
        self._document_repo = document_repo
        self._account_repo = account_repo
        self._deposit_repo = deposit_repo
        self._withdrawal_repo = withdrawal_repo

    def execute(self, context: AdminContext) -> AdminStats:
        countries = context.scope.countries
        return admin_stats(
            users=self._user_repo.list_all(countries=countries),
            documents=self._document_repo.list_all(countries=countries),
            accounts=self._account_repo.list_all(countries=countries),
            deposits=self._deposit_repo.list_all(countries=countries),
            withdrawals=self._withdrawal_repo.list_all(countries=countries),
        )


class ListActivityLogsUseCase:
    def __init__(self, activity_repo: ActivityLogRepository) -> None:
        self._activity_repo = activity_repo

    def execute(self, context: AdminContext, limit: int = 200) -> list[ActivityLog]:
        admin_id = None if context.admin.is_super else context.admin.id
        return self._activity_repo.list_recent(admin_id=admin_id, limit=limit)
