"""Cloudflare API utilities."""
