"""
Snapshot Models Module

Immutable records supplied by the persistence collaborator: members, weekly
contributions, monthly fees, loans with their payments, fundraising
activities and ticket sales. Every record validates itself on construction
so invalid input never reaches the ledgers.
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass
from typing import Any, Optional, Tuple
from enum import Enum
import re

from .errors import InvalidInputError
from .money import ZERO, to_decimal
from .dates import to_datetime
from .identities import ExternalBorrower, MemberIdentity


NATIONAL_ID_PATTERN = re.compile(r"^\d{10}$")
DEFAULT_TICKETS_PER_MEMBER = 10
WEEKS_PER_MONTH = 5


class LoanStatus(Enum):
    """Stored loan status (set by the collaborator)"""
    ACTIVE = "active"
    PAID = "paid"


class PaymentType(Enum):
    """Bucket a loan payment is booked against"""
    PRINCIPAL = "principal"
    INTEREST = "interest"


class BorrowerType(Enum):
    """Who took the loan"""
    MEMBER = "member"
    EXTERNAL = "external"


def _coerce_enum(enum_cls, value: Any, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(field_name, f"must be one of: {allowed}", value)


def _require_int(value: Any, field_name: str, low: int = None, high: int = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(field_name, "must be an integer", value)
    if low is not None and value < low:
        raise InvalidInputError(field_name, f"must be at least {low}", value)
    if high is not None and value > high:
        raise InvalidInputError(field_name, f"must be at most {high}", value)
    return value


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(field_name, "must be a non-empty string", value)
    return value


def _normalize_alias(value: Optional[str]) -> Optional[str]:
    """Blank aliases mean "no action" """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError("action_alias", "must be a string", value)
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Member:
    """A physical member, optionally running several named actions"""
    id: str
    name: str
    national_id: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    phone: Optional[str] = None
    active: bool = True
    joined_date: Optional[datetime] = None

    def __post_init__(self):
        _require_text(self.id, "member.id")
        _require_text(self.name, "member.name")

        if self.national_id is not None and not NATIONAL_ID_PATTERN.match(self.national_id):
            raise InvalidInputError("member.national_id", "must be exactly 10 digits", self.national_id)

        aliases = []
        for alias in self.aliases or ():
            cleaned = _normalize_alias(alias)
            if cleaned is None:
                raise InvalidInputError("member.aliases", "aliases must not be blank", alias)
            if cleaned not in aliases:
                aliases.append(cleaned)
        object.__setattr__(self, 'aliases', tuple(aliases))

        if self.joined_date is not None:
            object.__setattr__(self, 'joined_date', to_datetime(self.joined_date, "member.joined_date"))

    @property
    def has_aliases(self) -> bool:
        return bool(self.aliases)


@dataclass(frozen=True)
class WeeklyPayment:
    """Weekly savings contribution for one (member, action, year, month, week) slot"""
    id: str
    member_id: str
    year: int
    month: int              # 0-11
    week: int               # 1-5
    amount: Decimal
    date: Optional[datetime] = None
    action_alias: Optional[str] = None

    def __post_init__(self):
        _require_text(self.member_id, "weekly_payment.member_id")
        _require_int(self.year, "weekly_payment.year", 1900)
        _require_int(self.month, "weekly_payment.month", 0, 11)
        _require_int(self.week, "weekly_payment.week", 1, WEEKS_PER_MONTH)
        object.__setattr__(self, 'amount', to_decimal(self.amount, "weekly_payment.amount", ZERO))
        object.__setattr__(self, 'action_alias', _normalize_alias(self.action_alias))
        if self.date is not None:
            object.__setattr__(self, 'date', to_datetime(self.date, "weekly_payment.date"))

    @property
    def slot(self) -> tuple:
        return (self.member_id, self.action_alias, self.year, self.month, self.week)


@dataclass(frozen=True)
class MonthlyFee:
    """Monthly lottery/raffle contribution for one (member, action, year, month) slot"""
    id: str
    member_id: str
    year: int
    month: int              # 0-11
    amount: Decimal
    date: Optional[datetime] = None
    action_alias: Optional[str] = None

    def __post_init__(self):
        _require_text(self.member_id, "monthly_fee.member_id")
        _require_int(self.year, "monthly_fee.year", 1900)
        _require_int(self.month, "monthly_fee.month", 0, 11)
        object.__setattr__(self, 'amount', to_decimal(self.amount, "monthly_fee.amount", ZERO))
        object.__setattr__(self, 'action_alias', _normalize_alias(self.action_alias))
        if self.date is not None:
            object.__setattr__(self, 'date', to_datetime(self.date, "monthly_fee.date"))

    @property
    def slot(self) -> tuple:
        return (self.member_id, self.action_alias, self.year, self.month)


@dataclass(frozen=True)
class LoanPayment:
    """Repayment recorded against a loan"""
    id: str
    loan_id: str
    amount: Decimal
    payment_type: PaymentType
    date: datetime

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_decimal(self.amount, "loan_payment.amount", ZERO, strict=True))
        object.__setattr__(self, 'payment_type',
                           _coerce_enum(PaymentType, self.payment_type, "loan_payment.payment_type"))
        object.__setattr__(self, 'date', to_datetime(self.date, "loan_payment.date"))


@dataclass(frozen=True)
class Loan:
    """
    Internal loan to a member action or to an external client

    interest_rate is a percentage (10 means 10 %) charged once as base
    interest and again for every month the loan stays unpaid past end_date.
    """
    id: str
    principal: Decimal
    interest_rate: Decimal
    start_date: datetime
    end_date: datetime
    status: LoanStatus = LoanStatus.ACTIVE
    payments: Tuple[LoanPayment, ...] = ()
    member_id: Optional[str] = None
    action_alias: Optional[str] = None
    client_name: Optional[str] = None

    def __post_init__(self):
        _require_text(self.id, "loan.id")
        object.__setattr__(self, 'principal', to_decimal(self.principal, "loan.principal", ZERO, strict=True))
        object.__setattr__(self, 'interest_rate', to_decimal(self.interest_rate, "loan.interest_rate", ZERO))
        object.__setattr__(self, 'start_date', to_datetime(self.start_date, "loan.start_date"))
        object.__setattr__(self, 'end_date', to_datetime(self.end_date, "loan.end_date"))
        object.__setattr__(self, 'status', _coerce_enum(LoanStatus, self.status, "loan.status"))
        object.__setattr__(self, 'action_alias', _normalize_alias(self.action_alias))
        object.__setattr__(self, 'payments', tuple(self.payments or ()))

        if self.end_date <= self.start_date:
            raise InvalidInputError("loan.end_date", "must be after start_date", self.end_date)

        if self.member_id is not None:
            _require_text(self.member_id, "loan.member_id")
        if self.client_name is not None and not isinstance(self.client_name, str):
            raise InvalidInputError("loan.borrower", "client_name must be a string", self.client_name)
        if not self.member_id and not (self.client_name and self.client_name.strip()):
            raise InvalidInputError("loan.borrower", "either member_id or client_name is required")

        for payment in self.payments:
            if not isinstance(payment, LoanPayment):
                raise InvalidInputError("loan.payments", "must contain LoanPayment records", payment)
            if payment.loan_id != self.id:
                raise InvalidInputError("loan_payment.loan_id",
                                        f"payment {payment.id} belongs to loan {payment.loan_id}", payment.loan_id)

    @property
    def borrower_type(self) -> BorrowerType:
        return BorrowerType.MEMBER if self.member_id else BorrowerType.EXTERNAL

    @property
    def borrower(self):
        """Tagged borrower variant (MemberIdentity or ExternalBorrower)"""
        if self.member_id:
            return MemberIdentity(self.member_id, self.action_alias)
        return ExternalBorrower(self.client_name.strip())

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), ZERO)


@dataclass(frozen=True)
class Activity:
    """Fundraising activity where each member is handed a block of tickets"""
    id: str
    name: str
    date: datetime
    ticket_price: Decimal
    total_tickets_per_member: int = DEFAULT_TICKETS_PER_MEMBER
    investment: Decimal = ZERO
    description: Optional[str] = None

    def __post_init__(self):
        _require_text(self.id, "activity.id")
        _require_text(self.name, "activity.name")
        object.__setattr__(self, 'date', to_datetime(self.date, "activity.date"))
        object.__setattr__(self, 'ticket_price',
                           to_decimal(self.ticket_price, "activity.ticket_price", ZERO, strict=True))
        _require_int(self.total_tickets_per_member, "activity.total_tickets_per_member", 1)
        object.__setattr__(self, 'investment', to_decimal(self.investment, "activity.investment", ZERO))


@dataclass(frozen=True)
class MemberActivity:
    """Ticket block handed to one member action for an activity"""
    id: str
    activity_id: str
    member_id: str
    tickets_sold: int = 0
    tickets_returned: int = 0
    action_alias: Optional[str] = None

    def __post_init__(self):
        _require_text(self.activity_id, "member_activity.activity_id")
        _require_text(self.member_id, "member_activity.member_id")
        _require_int(self.tickets_sold, "member_activity.tickets_sold", 0)
        _require_int(self.tickets_returned, "member_activity.tickets_returned", 0)
        object.__setattr__(self, 'action_alias', _normalize_alias(self.action_alias))

    def revenue(self, ticket_price: Decimal) -> Decimal:
        return self.tickets_sold * ticket_price
