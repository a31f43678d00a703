"""Bulk HTML repair tools."""
