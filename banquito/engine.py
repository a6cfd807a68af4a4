"""
Ledger Engine Facade

Single entry point for the report layer. Every operation is a pure function
of the snapshot it is given plus an explicit "now"; the engine keeps no
record state between calls and can be shared across threads.
"""

from typing import Any, Dict, Iterable, List, Optional

from .activities import ActivityLedger, ActivityResult
from .config import BanquitoConfig, get_config
from .distribution import DashboardSummary, ProfitDistributionEngine, YearReport
from .identities import IdentityResolver, MemberIdentity
from .loans import AccrualResult, LoanAccrualEngine
from .logging_config import get_logger, setup_logging
from .models import Activity, Loan, Member, MemberActivity, MonthlyFee, WeeklyPayment
from .savings import SavingsLedger, SavingsResult
from .schemas import Snapshot, load_snapshot


class BanquitoEngine:
    """
    Computes loan status, savings, activity results and the year report
    """

    def __init__(self, config: Optional[BanquitoConfig] = None, configure_logging: bool = False):
        self.config = config or get_config()
        if configure_logging:
            setup_logging(self.config.log_level, "banquito", self.config.log_format, self.config.log_file)
        self.logger = get_logger("banquito.engine")

        self.resolver = IdentityResolver()
        self.savings_ledger = SavingsLedger()
        self.activity_ledger = ActivityLedger()
        self.loan_engine = LoanAccrualEngine(self.config)
        self.distribution_engine = ProfitDistributionEngine(
            config=self.config,
            resolver=self.resolver,
            savings_ledger=self.savings_ledger,
            activity_ledger=self.activity_ledger,
            loan_engine=self.loan_engine
        )

    def compute_loan_status(self, loan: Loan, now) -> AccrualResult:
        """Amounts owed on a loan as of now"""
        return self.loan_engine.compute(loan, now)

    def compute_savings(
        self,
        identity: MemberIdentity,
        year: int,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee]
    ) -> SavingsResult:
        """Weekly, monthly and total savings of an identity in a year"""
        return self.savings_ledger.savings_for(identity, year, weekly_payments, monthly_fees)

    def compute_activity_stats(
        self,
        activity: Activity,
        member_activities: Iterable[MemberActivity]
    ) -> ActivityResult:
        """Revenue, investment and net profit of an activity"""
        return self.activity_ledger.stats(activity, member_activities)

    def compute_year_report(
        self,
        year: int,
        members: Iterable[Member],
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee],
        loans: Iterable[Loan],
        activities: Iterable[Activity],
        member_activities: Iterable[MemberActivity],
        active_only: bool = False
    ) -> YearReport:
        """Per-identity and grand-total distribution for a year"""
        return self.distribution_engine.report_for(
            year, members, weekly_payments, monthly_fees, loans, activities,
            member_activities, active_only=active_only
        )

    def resolve_identities(self, members: Iterable[Member], active_only: bool = False) -> List[MemberIdentity]:
        return self.resolver.resolve(members, active_only)

    def dashboard(self, now, snapshot: Snapshot) -> DashboardSummary:
        return self.distribution_engine.dashboard_summary(
            now, snapshot.weekly_payments, snapshot.monthly_fees, snapshot.loans
        )

    def load_snapshot(self, data: Dict[str, Any]) -> Snapshot:
        snapshot = load_snapshot(data)
        self.logger.debug(
            f"Loaded snapshot: {len(snapshot.members)} members, {len(snapshot.loans)} loans, "
            f"{len(snapshot.activities)} activities"
        )
        return snapshot

    def render_report(self, report: YearReport) -> Dict[str, Any]:
        """Year report rounded to the configured display precision"""
        return report.to_dict(self.config.display_precision)

    def report_from_snapshot(self, year: int, snapshot: Snapshot, active_only: bool = False) -> YearReport:
        """compute_year_report over a loaded snapshot"""
        return self.compute_year_report(
            year, snapshot.members, snapshot.weekly_payments, snapshot.monthly_fees,
            snapshot.loans, snapshot.activities, snapshot.member_activities,
            active_only=active_only
        )
