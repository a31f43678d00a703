"""Playwright smoke checks."""
