"""
Banquito Ledger & Distribution Engine

Pure computation layer for a community savings-and-loan group: member
savings, loan accrual with overdue compounding, fundraising activities and
the year-end profit split. All money math uses Decimal.
"""

__version__ = "1.0.0"
