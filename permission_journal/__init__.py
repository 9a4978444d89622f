"""
Money Permission Journal - Source Package

Local persistence and data access for a journal of money permissions:
statements a user makes to allow themselves a spending decision, plus
the categories and emotional tags that organize them.

DESIGN PRINCIPLES:
1. The store is constructed explicitly and handed to its consumers
2. Failures are visible in readiness and return values, never as crashes
3. No silent corrections
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
