"""Shared utilities: structured logging and numeric display helpers."""
