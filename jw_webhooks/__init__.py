"""Receive and authenticate JW Player platform webhooks."""

__version__ = "0.1.0"
