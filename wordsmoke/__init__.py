"""
Wordsmoke client core: round reconciliation, feedback and reporting
"""

__version__ = "1.0.0"
