"""
Cashbook - Source Package

A small bookkeeping dashboard for a sole trader: income and expense
transactions tagged by category and payment method, plus cash, bank
and capital balances.

DESIGN PRINCIPLES:
1. The hosted store owns every record; we only hold a disposable copy
2. Totals are recomputed from what is on screen, never cached
3. Money is Decimal, end to end
4. Every store failure is shown to the user, never swallowed
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Cashbook Team"
