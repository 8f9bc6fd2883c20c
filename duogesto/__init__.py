"""
DuoGesto - Source Package

Household finances for a couple: the monthly cash flow of incomes and
expenses, the accumulated balance, savings goals and their movement
history.

DESIGN PRINCIPLES:
1. The accrual core is pure and never raises for a record
2. Records are normalized once, at the store boundary
3. A goal's balance always equals its opening amount plus its ledger
4. Every write must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "DuoGesto Team"
