"""Shared helpers: time handling, locking, psychrometrics and the filter bank."""
