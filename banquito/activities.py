"""
Activity Ledger Module

Aggregates ticket-sales revenue and investment cost per fundraising
activity, and tracks whether each participant has accounted for the whole
block of tickets they were handed.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import InvalidInputError
from .logging_config import get_logger
from .models import Activity, MemberActivity
from .money import sum_amounts


@dataclass(frozen=True)
class ParticipantStatus:
    """Ticket accounting of one participant"""
    member_activity_id: str
    member_id: str
    action_alias: Optional[str]
    tickets_sold: int
    tickets_returned: int
    tickets_pending: int
    amount_due: Decimal                 # tickets_sold x ticket_price

    @property
    def fully_accounted(self) -> bool:
        return self.tickets_pending == 0


@dataclass(frozen=True)
class ActivityResult:
    """Revenue, cost and profit of an activity"""
    activity_id: str
    total_revenue: Decimal
    total_investment: Decimal
    tickets_sold: int
    tickets_returned: int
    participants: Tuple[ParticipantStatus, ...] = ()

    @property
    def net_profit(self) -> Decimal:
        return self.total_revenue - self.total_investment


def activities_in_year(activities: Iterable[Activity], year: int) -> List[Activity]:
    """Activities dated in the given calendar year (UTC for aware timestamps)"""
    return [activity for activity in activities if activity.date.year == year]


class ActivityLedger:
    """Computes activity results from ticket sales"""

    def __init__(self):
        self.logger = get_logger("banquito.activities")

    def stats(self, activity: Activity, member_activities: Iterable[MemberActivity]) -> ActivityResult:
        """
        Revenue and net profit of an activity

        Args:
            activity: Activity snapshot
            member_activities: Ticket rows; rows of other activities are ignored

        Returns:
            ActivityResult (zero revenue when nobody participated)

        Raises:
            InvalidInputError: If a participant sold and returned more tickets
                than they were handed
        """
        participants = []
        for row in member_activities:
            if row.activity_id != activity.id:
                continue
            participants.append(self._participant(activity, row))

        total_revenue = sum_amounts(p.amount_due for p in participants)

        self.logger.debug(
            f"Activity {activity.id}: {len(participants)} participants, revenue {total_revenue}"
        )

        return ActivityResult(
            activity_id=activity.id,
            total_revenue=total_revenue,
            total_investment=activity.investment,
            tickets_sold=sum(p.tickets_sold for p in participants),
            tickets_returned=sum(p.tickets_returned for p in participants),
            participants=tuple(participants)
        )

    def net_profit_for_year(
        self,
        activities: Iterable[Activity],
        member_activities: Iterable[MemberActivity],
        year: int
    ) -> Decimal:
        """Combined net profit of the activities dated in a year"""
        rows = list(member_activities)
        return sum_amounts(
            self.stats(activity, rows).net_profit
            for activity in activities_in_year(activities, year)
        )

    def _participant(self, activity: Activity, row: MemberActivity) -> ParticipantStatus:
        handed_out = activity.total_tickets_per_member
        accounted = row.tickets_sold + row.tickets_returned
        if accounted > handed_out:
            raise InvalidInputError(
                "member_activity.tickets_sold",
                f"row {row.id} accounts for {accounted} tickets but only {handed_out} were handed out",
                accounted
            )

        return ParticipantStatus(
            member_activity_id=row.id,
            member_id=row.member_id,
            action_alias=row.action_alias,
            tickets_sold=row.tickets_sold,
            tickets_returned=row.tickets_returned,
            tickets_pending=handed_out - accounted,
            amount_due=row.revenue(activity.ticket_price)
        )
