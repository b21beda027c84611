"""
Backend Signals: growth-signal chain engine for the broker CRM.

Takes a snapshot of prospects and their detected growth signals (hiring,
permits, contracts, expansion, equipment) and finds related signal chains,
recurring chain patterns across the book, and likely next signals.
"""

__version__ = "0.1.0"
