"""
Expense Tracker

A Flask REST API for personal expenses with JWT sessions and receipt total
extraction from OCR text.
"""

__version__ = "1.0.0"

from expense_tracker.app import create_app
from expense_tracker.receipt_parser import ReceiptScan, parse_receipt

__all__ = ["create_app", "ReceiptScan", "parse_receipt"]
