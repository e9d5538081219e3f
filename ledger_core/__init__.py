"""
Ledger Core - Source Package

A double-entry bookkeeping core for Swedish small companies:
balanced verifications over the BAS chart of accounts, SIE 4 import,
and INK2 tax-return fields.

DESIGN PRINCIPLES:
1. An unbalanced verification cannot exist
2. Fail early, fail visibly
3. No silent corrections
4. Every booking and import is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledger Core Team"
