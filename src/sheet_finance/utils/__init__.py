"""Shared helpers for amounts, dates, logging and sanitization."""
