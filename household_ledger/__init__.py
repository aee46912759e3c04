"""
Household Ledger - Source Package

Month-by-month planned vs. actual budgeting for a household, with a
running cash balance carried from one month into the next.

DESIGN PRINCIPLES:
1. A month's starting balance is resolved once, then never recomputed
2. January always opens at the anchor balance
3. Storage failures never stop the engine
4. Every step is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
