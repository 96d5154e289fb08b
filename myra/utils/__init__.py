"""Shared helpers: logging setup and environment parsing."""
