"""
Test suite for distribution module

Tests the year-end report: savings per identity, equal split of interest
collected and activity profit, reconciliation and the dashboard summary.
"""

from decimal import Decimal
from datetime import datetime, timedelta, timezone

from banquito.config import BanquitoConfig
from banquito.distribution import ProfitDistributionEngine, equal_share, interest_collected
from banquito.identities import MemberIdentity
from banquito.models import (
    Activity, Loan, LoanPayment, LoanStatus, Member, MemberActivity,
    MonthlyFee, PaymentType, WeeklyPayment
)


def weekly(pid, member_id, amount, week=1, alias=None, year=2025):
    return WeeklyPayment(
        id=pid, member_id=member_id, year=year, month=0, week=week,
        amount=Decimal(amount), action_alias=alias
    )


def fee(fid, member_id, amount, alias=None, year=2025):
    return MonthlyFee(
        id=fid, member_id=member_id, year=year, month=0,
        amount=Decimal(amount), action_alias=alias
    )


def loan_with_interest(loan_id, payments):
    return Loan(
        id=loan_id, principal=Decimal("100"), interest_rate=Decimal("10"),
        start_date=datetime(2025, 1, 1), end_date=datetime(2025, 4, 1),
        member_id="M1",
        payments=tuple(
            LoanPayment(id=f"{loan_id}-P{i}", loan_id=loan_id, amount=Decimal(amount),
                        payment_type=payment_type, date=date)
            for i, (amount, payment_type, date) in enumerate(payments)
        )
    )


class TestYearReport:
    """Test the per-identity distribution"""

    def setup_method(self):
        self.engine = ProfitDistributionEngine(config=BanquitoConfig())
        self.members = [
            Member(id="M1", name="Ana"),
            Member(id="M2", name="Luis", aliases=("A", "B")),
        ]
        self.weekly = [
            weekly("W1", "M1", "7", week=1),
            weekly("W2", "M1", "7", week=2),
            weekly("W3", "M2", "7", alias="A"),
            weekly("W4", "M2", "7", alias="B"),
            weekly("W5", "M1", "50", year=2024),
        ]
        self.fees = [fee("F1", "M1", "5"), fee("F2", "M2", "5", alias="A")]
        self.loans = [
            loan_with_interest("L1", [
                ("10", PaymentType.INTEREST, datetime(2025, 3, 1)),
                ("100", PaymentType.PRINCIPAL, datetime(2025, 3, 1)),
                ("8", PaymentType.INTEREST, datetime(2024, 12, 1)),
            ]),
            loan_with_interest("L2", [("5", PaymentType.INTEREST, datetime(2025, 6, 1))]),
        ]
        self.activities = [
            Activity(id="ACT1", name="Rifa", date=datetime(2025, 5, 1),
                     ticket_price=Decimal("5"), investment=Decimal("10")),
            Activity(id="ACT2", name="Bingo", date=datetime(2024, 5, 1),
                     ticket_price=Decimal("5"), investment=Decimal("0")),
        ]
        self.member_activities = [
            MemberActivity(id="MA1", activity_id="ACT1", member_id="M1", tickets_sold=6),
            MemberActivity(id="MA2", activity_id="ACT2", member_id="M1", tickets_sold=10),
        ]

    def report(self, **overrides):
        args = dict(
            year=2025, members=self.members, weekly_payments=self.weekly,
            monthly_fees=self.fees, loans=self.loans, activities=self.activities,
            member_activities=self.member_activities
        )
        args.update(overrides)
        return self.engine.report_for(**args)

    def test_rows_per_identity(self):
        """Test one row per identity in member then alias order"""
        report = self.report()

        assert report.identity_count == 3
        assert [row.identity for row in report.rows] == [
            MemberIdentity("M1"), MemberIdentity("M2", "A"), MemberIdentity("M2", "B")
        ]
        assert [row.label for row in report.rows] == ["Ana", "Luis (A)", "Luis (B)"]
        assert [row.savings.total for row in report.rows] == [Decimal("19"), Decimal("12"), Decimal("7")]
        assert report.total_savings == Decimal("38")

    def test_shares_split_equally(self):
        """Test interest and activity profit are split across all identities"""
        report = self.report()

        assert report.interest_collected == Decimal("15")
        assert report.activity_net_profit == Decimal("20")
        assert report.loan_share_per_identity == Decimal("5")
        assert report.activity_share_per_identity == Decimal("20") / Decimal("3")
        for row in report.rows:
            assert row.loan_share == Decimal("5")
            assert row.activity_share == Decimal("20") / Decimal("3")

    def test_reconciliation(self):
        """Test distributed amounts add back up to savings plus profits"""
        report = self.report()

        assert report.expected_total == Decimal("73")
        assert abs(report.reconciliation_difference) < Decimal("1e-20")

    def test_to_dict_rounds_for_display(self):
        """Test presentation rounding happens only in to_dict"""
        data = self.report().to_dict()

        assert data["year"] == 2025
        assert data["identity_count"] == 3
        assert data["total_savings"] == "38.00"
        assert data["activity_share_per_identity"] == "6.67"
        assert data["grand_total_receive"] == "73.00"
        assert [row["total_receive"] for row in data["rows"]] == ["30.67", "23.67", "18.67"]
        assert data["rows"][1]["action_alias"] == "A"
        assert data["rows"][0]["action_alias"] is None

    def test_no_identities(self):
        """Test an empty group shares nothing and reports the profits it kept"""
        report = self.report(members=[])

        assert report.rows == ()
        assert report.loan_share_per_identity == Decimal("0")
        assert report.activity_share_per_identity == Decimal("0")
        assert report.grand_total_receive == Decimal("0")
        assert report.expected_total == Decimal("35")
        assert report.undistributed == Decimal("35")
        assert report.reconciliation_difference == Decimal("0")
        assert report.to_dict()["undistributed"] == "35.00"

    def test_everything_distributed_with_identities(self):
        """Test nothing is left undistributed when identities exist"""
        report = self.report()

        assert report.undistributed == Decimal("0")
        assert report.to_dict()["expected_total"] == "73.00"

    def test_year_boundary_is_utc(self):
        """Test aware timestamps are assigned to their UTC calendar year"""
        late_evening = datetime(2025, 12, 31, 20, 0, tzinfo=timezone(timedelta(hours=-5)))
        loans = [loan_with_interest("L9", [("6", PaymentType.INTEREST, late_evening)])]

        assert interest_collected(loans, 2025) == Decimal("0")
        assert interest_collected(loans, 2026) == Decimal("6")
        assert self.report(loans=loans).interest_collected == Decimal("0")

    def test_negative_activity_profit(self):
        """Test a loss-making year reduces every identity's share"""
        activities = [Activity(id="ACT1", name="Rifa", date=datetime(2025, 5, 1),
                               ticket_price=Decimal("5"), investment=Decimal("60"))]
        report = self.report(activities=activities)

        assert report.activity_net_profit == Decimal("-30")
        assert report.activity_share_per_identity == Decimal("-10")
        assert report.rows[0].total_receive == Decimal("19") + Decimal("5") - Decimal("10")

    def test_active_only(self):
        """Test inactive members can be left out of the split"""
        members = [Member(id="M1", name="Ana"), Member(id="M2", name="Luis", aliases=("A", "B"), active=False)]

        assert self.report(members=members).identity_count == 3
        report = self.report(members=members, active_only=True)
        assert report.identity_count == 1
        assert report.loan_share_per_identity == Decimal("15")

    def test_unattributed_savings(self):
        """Test rows no identity owns are reported separately"""
        rows = self.weekly + [weekly("W9", "M2", "4", week=3)]
        report = self.report(weekly_payments=rows)

        assert report.unattributed_savings == Decimal("4")
        assert report.total_savings == Decimal("38")


class TestHelpers:
    """Test module-level helpers"""

    def test_equal_share(self):
        """Test splitting amounts"""
        assert equal_share(Decimal("15"), 3) == Decimal("5")
        assert equal_share(Decimal("15"), 0) == Decimal("0")

    def test_interest_collected_counts_interest_only(self):
        """Test principal payments and other years are ignored"""
        loan = loan_with_interest("L1", [
            ("10", PaymentType.INTEREST, datetime(2025, 3, 1)),
            ("100", PaymentType.PRINCIPAL, datetime(2025, 3, 1)),
        ])
        assert interest_collected([loan], 2025) == Decimal("10")
        assert interest_collected([loan], 2026) == Decimal("0")


class TestDashboard:
    """Test headline figures"""

    def test_dashboard_summary(self):
        """Test savings, lent amount and loans needing attention"""
        engine = ProfitDistributionEngine(config=BanquitoConfig())
        loans = [
            Loan(id="L1", principal=Decimal("100"), interest_rate=Decimal("10"),
                 start_date=datetime(2025, 1, 1), end_date=datetime(2025, 5, 1), member_id="M1"),
            Loan(id="L2", principal=Decimal("50"), interest_rate=Decimal("10"),
                 start_date=datetime(2025, 1, 1), end_date=datetime(2025, 6, 5), member_id="M2"),
            Loan(id="L3", principal=Decimal("30"), interest_rate=Decimal("10"),
                 start_date=datetime(2025, 1, 1), end_date=datetime(2025, 12, 1), client_name="Rosa"),
            Loan(id="L4", principal=Decimal("20"), interest_rate=Decimal("10"),
                 start_date=datetime(2025, 1, 1), end_date=datetime(2025, 2, 1), member_id="M1",
                 status=LoanStatus.PAID,
                 payments=(LoanPayment(id="P1", loan_id="L4", amount=Decimal("22"),
                                       payment_type=PaymentType.PRINCIPAL, date=datetime(2025, 2, 1)),)),
        ]
        weekly_rows = [weekly("W1", "M1", "7"), weekly("W2", "M2", "7", alias="A", year=2024)]

        summary = engine.dashboard_summary(datetime(2025, 6, 1), weekly_rows, [fee("F1", "M1", "5")], loans)

        assert summary.total_savings == Decimal("19")
        assert summary.total_loaned == Decimal("200")
        assert summary.active_loans == 3
        assert summary.overdue_loan_ids == ("L1",)
        assert summary.due_soon_loan_ids == ("L2",)
