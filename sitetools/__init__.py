"""
Build, SEO, browser-check, and Cloudflare tooling for a static marketing site.
"""

__version__ = "1.0.0"
