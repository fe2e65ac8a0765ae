"""Shared helpers: logging setup, time and amortisation arithmetic."""
