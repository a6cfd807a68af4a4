"""
Savings Ledger Module

Aggregates weekly contributions and monthly fees per identity per year.
Each (member, action, year, month[, week]) slot holds at most one amount:
when a snapshot carries the same slot twice, the later record overwrites
the earlier one instead of adding to it.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .identities import MemberIdentity, belongs_to
from .logging_config import get_logger
from .models import MonthlyFee, WeeklyPayment, WEEKS_PER_MONTH
from .money import ZERO, sum_amounts


@dataclass(frozen=True)
class SavingsResult:
    """Savings of one identity for one year"""
    weekly_total: Decimal
    monthly_total: Decimal

    @property
    def total(self) -> Decimal:
        return self.weekly_total + self.monthly_total


@dataclass(frozen=True)
class MonthSavings:
    """One row of the yearly payment grid"""
    month: int                                   # 0-11
    weeks: Dict[int, Decimal] = field(default_factory=dict)
    fee: Decimal = ZERO

    @property
    def weekly_total(self) -> Decimal:
        return sum_amounts(self.weeks.values())

    @property
    def total(self) -> Decimal:
        return self.weekly_total + self.fee


def latest_per_slot(records: Iterable) -> List:
    """Collapse records sharing a slot, keeping the last one seen"""
    by_slot = {}
    for record in records:
        by_slot[record.slot] = record
    return list(by_slot.values())


class SavingsLedger:
    """Sums weekly contributions and monthly fees per identity"""

    def __init__(self):
        self.logger = get_logger("banquito.savings")

    def savings_for(
        self,
        identity: MemberIdentity,
        year: int,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee]
    ) -> SavingsResult:
        """
        Total savings of an identity in a year

        Args:
            identity: Member identity (alias None means every row of the member)
            year: Reporting year
            weekly_payments: Weekly payment snapshot
            monthly_fees: Monthly fee snapshot

        Returns:
            SavingsResult with weekly, monthly and combined totals
        """
        weekly = self._rows_for(identity, year, weekly_payments)
        monthly = self._rows_for(identity, year, monthly_fees)

        return SavingsResult(
            weekly_total=sum_amounts(p.amount for p in weekly),
            monthly_total=sum_amounts(f.amount for f in monthly)
        )

    def monthly_breakdown(
        self,
        identity: MemberIdentity,
        year: int,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee]
    ) -> List[MonthSavings]:
        """Twelve rows (January first) of weekly amounts and the monthly fee"""
        weeks_by_month = {month: {} for month in range(12)}
        fee_by_month = {month: ZERO for month in range(12)}

        for payment in self._rows_for(identity, year, weekly_payments):
            weeks = weeks_by_month[payment.month]
            weeks[payment.week] = weeks.get(payment.week, ZERO) + payment.amount

        for fee in self._rows_for(identity, year, monthly_fees):
            fee_by_month[fee.month] += fee.amount

        return [
            MonthSavings(
                month=month,
                weeks={week: weeks_by_month[month][week]
                       for week in range(1, WEEKS_PER_MONTH + 1) if week in weeks_by_month[month]},
                fee=fee_by_month[month]
            )
            for month in range(12)
        ]

    def unattributed_total(
        self,
        members: Iterable,
        year: int,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee]
    ) -> Decimal:
        """
        Savings in a year that no identity owns

        These are rows of unknown members, and rows of members with actions
        whose alias matches none of them (including rows with no alias).
        """
        aliases_by_member = {member.id: member.aliases for member in members}
        total = ZERO

        rows = latest_per_slot(weekly_payments) + latest_per_slot(monthly_fees)
        for row in rows:
            if row.year != year:
                continue
            if row.member_id not in aliases_by_member:
                total += row.amount
                continue
            aliases = aliases_by_member[row.member_id]
            if aliases and row.action_alias not in aliases:
                total += row.amount

        if total:
            self.logger.warning(
                f"Savings of {total} in {year} are not attributed to any identity"
            )
        return total

    def _rows_for(self, identity: MemberIdentity, year: int, records: Iterable) -> List:
        return [
            record for record in latest_per_slot(records)
            if record.year == year and belongs_to(identity, record.member_id, record.action_alias)
        ]
