"""
Pydantic schemas for snapshot records

The persistence collaborator hands over plain records (camelCase keys as
served by the group's API; snake_case is accepted too). These models parse
them and convert to the immutable domain records in models.py.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import InvalidInputError
from .models import (
    Activity, Loan, LoanPayment, LoanStatus, Member, MemberActivity,
    MonthlyFee, WeeklyPayment, DEFAULT_TICKETS_PER_MEMBER
)


DateValue = Union[datetime, date, str]


class RecordModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class MemberRecord(RecordModel):
    id: str
    name: str
    national_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("cedula", "nationalId", "national_id")
    )
    aliases: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    active: bool = True
    joined_date: Optional[DateValue] = None

    def to_domain(self) -> Member:
        return Member(
            id=self.id,
            name=self.name,
            national_id=self.national_id or None,
            aliases=tuple(self.aliases),
            phone=self.phone,
            active=self.active,
            joined_date=self.joined_date or None
        )


class WeeklyPaymentRecord(RecordModel):
    id: str
    member_id: str
    action_alias: Optional[str] = None
    year: int
    month: int
    week: int
    amount: Decimal
    date: Optional[DateValue] = None

    def to_domain(self) -> WeeklyPayment:
        return WeeklyPayment(
            id=self.id, member_id=self.member_id, year=self.year, month=self.month,
            week=self.week, amount=self.amount, date=self.date or None,
            action_alias=self.action_alias
        )


class MonthlyFeeRecord(RecordModel):
    id: str
    member_id: str
    action_alias: Optional[str] = None
    year: int
    month: int
    amount: Decimal
    date: Optional[DateValue] = None

    def to_domain(self) -> MonthlyFee:
        return MonthlyFee(
            id=self.id, member_id=self.member_id, year=self.year, month=self.month,
            amount=self.amount, date=self.date or None, action_alias=self.action_alias
        )


class LoanPaymentRecord(RecordModel):
    id: str
    loan_id: str
    amount: Decimal
    payment_type: str
    date: DateValue

    def to_domain(self) -> LoanPayment:
        return LoanPayment(
            id=self.id, loan_id=self.loan_id, amount=self.amount,
            payment_type=self.payment_type, date=self.date
        )


class LoanRecord(RecordModel):
    id: str
    member_id: Optional[str] = None
    action_alias: Optional[str] = None
    client_name: Optional[str] = None
    amount: Decimal = Field(validation_alias=AliasChoices("amount", "principal"))
    interest_rate: Decimal
    start_date: DateValue
    end_date: DateValue
    status: str = "active"
    payments: List[LoanPaymentRecord] = Field(default_factory=list)

    def to_domain(self) -> Loan:
        # A stored "overdue" status is derived state; accrual recomputes it
        status = LoanStatus.ACTIVE if self.status == "overdue" else self.status
        return Loan(
            id=self.id,
            principal=self.amount,
            interest_rate=self.interest_rate,
            start_date=self.start_date,
            end_date=self.end_date,
            status=status,
            payments=tuple(p.to_domain() for p in self.payments),
            member_id=self.member_id or None,
            action_alias=self.action_alias,
            client_name=self.client_name
        )


class ActivityRecord(RecordModel):
    id: str
    name: str
    date: DateValue
    ticket_price: Decimal
    total_tickets_per_member: int = DEFAULT_TICKETS_PER_MEMBER
    investment: Decimal = Decimal('0')
    description: Optional[str] = None

    def to_domain(self) -> Activity:
        return Activity(
            id=self.id, name=self.name, date=self.date, ticket_price=self.ticket_price,
            total_tickets_per_member=self.total_tickets_per_member,
            investment=self.investment, description=self.description
        )


class MemberActivityRecord(RecordModel):
    id: str
    activity_id: str
    member_id: str
    action_alias: Optional[str] = None
    tickets_sold: int = 0
    tickets_returned: int = 0

    def to_domain(self) -> MemberActivity:
        return MemberActivity(
            id=self.id, activity_id=self.activity_id, member_id=self.member_id,
            tickets_sold=self.tickets_sold, tickets_returned=self.tickets_returned,
            action_alias=self.action_alias
        )


class SnapshotRecord(RecordModel):
    members: List[MemberRecord] = Field(default_factory=list)
    weekly_payments: List[WeeklyPaymentRecord] = Field(default_factory=list)
    monthly_fees: List[MonthlyFeeRecord] = Field(default_factory=list)
    loans: List[LoanRecord] = Field(default_factory=list)
    activities: List[ActivityRecord] = Field(default_factory=list)
    member_activities: List[MemberActivityRecord] = Field(default_factory=list)


@dataclass(frozen=True)
class Snapshot:
    """Consistent read snapshot of every record the engine consumes"""
    members: Tuple[Member, ...] = ()
    weekly_payments: Tuple[WeeklyPayment, ...] = ()
    monthly_fees: Tuple[MonthlyFee, ...] = ()
    loans: Tuple[Loan, ...] = ()
    activities: Tuple[Activity, ...] = ()
    member_activities: Tuple[MemberActivity, ...] = ()


def load_snapshot(data: Dict[str, Any]) -> Snapshot:
    """
    Parse plain records into a domain snapshot

    Raises:
        InvalidInputError: If any record is malformed; field names the path
            of the first offending value (e.g. "loans.0.interestRate")
    """
    try:
        record = SnapshotRecord.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        path = ".".join(str(part) for part in error["loc"])
        raise InvalidInputError(path, error["msg"], error.get("input"))

    return Snapshot(
        members=tuple(m.to_domain() for m in record.members),
        weekly_payments=tuple(p.to_domain() for p in record.weekly_payments),
        monthly_fees=tuple(f.to_domain() for f in record.monthly_fees),
        loans=tuple(loan.to_domain() for loan in record.loans),
        activities=tuple(a.to_domain() for a in record.activities),
        member_activities=tuple(ma.to_domain() for ma in record.member_activities)
    )
