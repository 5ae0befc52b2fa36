"""Approval Relay: Telegram-backed approval requests with client polling."""

__version__ = "0.1.0"
