"""Shared utilities: logging setup, imaging, and formatting helpers."""
