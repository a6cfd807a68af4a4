"""
Test suite for schemas module

Tests parsing of plain snapshot records into domain records.
"""

import pytest
from decimal import Decimal
from datetime import datetime

from banquito.errors import InvalidInputError
from banquito.models import LoanStatus, PaymentType
from banquito.schemas import load_snapshot


def snapshot_data():
    return {
        "members": [
            {"id": "M1", "name": "Ana", "cedula": "0102030405"},
            {"id": "M2", "name": "Luis", "aliases": ["A", "B"], "active": False},
        ],
        "weeklyPayments": [
            {"id": "W1", "memberId": "M1", "year": 2025, "month": 0, "week": 1, "amount": "7"},
            {"id": "W2", "memberId": "M2", "actionAlias": "A", "year": 2025, "month": 0, "week": 1,
             "amount": 7, "date": "2025-01-06"},
        ],
        "monthlyFees": [
            {"id": "F1", "memberId": "M2", "actionAlias": "", "year": 2025, "month": 0, "amount": "5"},
        ],
        "loans": [
            {
                "id": "L1", "memberId": "M1", "amount": "100", "interestRate": "10",
                "startDate": "2025-01-01", "endDate": "2025-02-01", "status": "overdue",
                "payments": [
                    {"id": "P1", "loanId": "L1", "amount": "10", "paymentType": "interest",
                     "date": "2025-03-01T10:00:00Z"},
                ],
            },
        ],
        "activities": [
            {"id": "ACT1", "name": "Rifa", "date": "2025-05-01", "ticketPrice": "5", "investment": "10"},
        ],
        "memberActivities": [
            {"id": "MA1", "activityId": "ACT1", "memberId": "M1", "ticketsSold": 6},
        ],
    }


class TestLoadSnapshot:
    """Test snapshot parsing"""

    def test_camel_case_records(self):
        """Test records as served by the API"""
        snapshot = load_snapshot(snapshot_data())

        assert [m.id for m in snapshot.members] == ["M1", "M2"]
        assert snapshot.members[0].national_id == "0102030405"
        assert snapshot.members[1].aliases == ("A", "B")
        assert not snapshot.members[1].active

        assert snapshot.weekly_payments[0].amount == Decimal("7")
        assert snapshot.weekly_payments[1].action_alias == "A"
        assert snapshot.weekly_payments[1].date == datetime(2025, 1, 6)
        assert snapshot.monthly_fees[0].action_alias is None

        assert snapshot.activities[0].total_tickets_per_member == 10
        assert snapshot.member_activities[0].tickets_sold == 6

    def test_loan_records(self):
        """Test loans, payments and stored status"""
        loan = load_snapshot(snapshot_data()).loans[0]

        assert loan.principal == Decimal("100")
        assert loan.status == LoanStatus.ACTIVE
        assert loan.payments[0].payment_type == PaymentType.INTEREST
        assert loan.payments[0].date == datetime(2025, 3, 1, 10, 0)

    def test_snake_case_accepted(self):
        """Test snake_case keys populate the same fields"""
        data = {
            "loans": [{
                "id": "L1", "client_name": "Rosa", "principal": "50", "interest_rate": "15",
                "start_date": "2025-01-01", "end_date": "2025-02-01", "status": "paid",
            }],
        }
        loan = load_snapshot(data).loans[0]

        assert loan.client_name == "Rosa"
        assert loan.principal == Decimal("50")
        assert loan.status == LoanStatus.PAID

    def test_empty_snapshot(self):
        """Test missing collections default to empty"""
        snapshot = load_snapshot({})
        assert snapshot.members == ()
        assert snapshot.loans == ()

    def test_malformed_amount(self):
        """Test parse errors name the offending path"""
        data = snapshot_data()
        data["loans"][0]["interestRate"] = "abc"

        with pytest.raises(InvalidInputError) as exc_info:
            load_snapshot(data)
        assert exc_info.value.field == "loans.0.interestRate"

    def test_missing_field(self):
        """Test required fields are enforced"""
        data = snapshot_data()
        del data["loans"][0]["endDate"]

        with pytest.raises(InvalidInputError, match="endDate"):
            load_snapshot(data)

    def test_domain_validation(self):
        """Test domain rules still apply after parsing"""
        data = snapshot_data()
        data["loans"][0]["endDate"] = "2024-12-01"

        with pytest.raises(InvalidInputError) as exc_info:
            load_snapshot(data)
        assert exc_info.value.field == "loan.end_date"

    def test_bad_national_id(self):
        """Test malformed national ids are rejected"""
        data = snapshot_data()
        data["members"][0]["cedula"] = "12ab"

        with pytest.raises(InvalidInputError, match="member.national_id"):
            load_snapshot(data)
