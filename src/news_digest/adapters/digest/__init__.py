"""Digest renderers."""

from news_digest.adapters.digest.renderer import build_subject, render_html, render_text

__all__ = ["build_subject", "render_html", "render_text"]
