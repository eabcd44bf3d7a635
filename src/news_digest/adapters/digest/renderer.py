"""HTML and plain-text digest rendering."""

from datetime import datetime
from html import escape
from typing import Optional

from news_digest.core import RankedArticle

PALETTE = {
    "business": "#fef3c7",
    "tech": "#e0f2fe",
    "finance": "#ecfccb",
}
DEFAULT_COLOR = "#e2e8f0"


def build_subject(articles: list[RankedArticle]) -> str:
    return f"Daily News Digest ({len(articles)} stories)"


def group_by_category(articles: list[RankedArticle]) -> dict[str, list[RankedArticle]]:
    """Group articles by category, keeping first-seen category order."""
    grouped: dict[str, list[RankedArticle]] = {}
    for article in articles:
        grouped.setdefault(article.category.value, []).append(article)
    return grouped


def render_text(articles: list[RankedArticle]) -> str:
    """Plain-text fallback body."""
    if not articles:
        return "No stories matched your sources and topics today."

    blocks = []
    for article in articles:
        lines = [
            f"- {article.title}",
            f"Source: {article.candidate.source}",
            f"Read: {article.url}",
            article.summary,
        ]
        lines.extend(f"  * {point}" for point in article.key_points)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _format_article(article: RankedArticle, category: str, color: str) -> str:
    points = "".join(f"<li>{escape(point)}</li>" for point in article.key_points)
    points_html = f'<ul style="margin:0 0 12px;color:#334155;">{points}</ul>' if points else ""
    return (
        '<article style="padding:18px 20px;margin:12px 0;background:#fff;'
        'border:1px solid rgba(15,23,42,0.08);border-radius:12px;">'
        f'<div style="font-size:11px;font-weight:600;text-transform:uppercase;color:#475569;'
        f'border-bottom:2px solid {color};">{escape(category)}</div>'
        f'<h3 style="margin:8px 0 10px;color:#0f172a;">{escape(article.title)}</h3>'
        f'<p style="margin:0 0 12px;color:#334155;line-height:1.6;">{escape(article.summary)}</p>'
        f"{points_html}"
        f'<div style="font-size:12px;color:#64748b;">Source: '
        f'<strong>{escape(article.candidate.source)}</strong></div>'
        f'<a href="{escape(article.url, quote=True)}" style="font-size:13px;">'
        "Read the article on the source site ↗</a>"
        "</article>"
    )


def render_html(articles: list[RankedArticle], generated_at: Optional[datetime] = None) -> str:
    """HTML body with one section per category."""
    generated_at = generated_at or datetime.now()

    sections = []
    for category, items in group_by_category(articles).items():
        color = PALETTE.get(category, DEFAULT_COLOR)
        body = "".join(_format_article(a, category, color) for a in items)
        sections.append(
            f'<section style="margin-top:26px;">'
            f'<h2 style="margin:0;padding:12px 16px;background:{color};'
            f'text-transform:capitalize;color:#0b1c3a;">{escape(category)}</h2>'
            f"{body}</section>"
        )

    if not sections:
        sections.append("<p>No stories matched your sources and topics today.</p>")

    return (
        "<!doctype html><html>"
        '<body style="font-family:\'Segoe UI\',Arial,sans-serif;background:#f1f5f9;padding:28px;">'
        '<div style="max-width:760px;margin:0 auto;background:#fff;padding:28px;border-radius:12px;">'
        '<h1 style="margin:0;color:#0f172a;">Daily News Digest</h1>'
        f'<p style="color:#475569;font-size:13px;">Generated {generated_at:%Y-%m-%d %H:%M}</p>'
        f"{''.join(sections)}"
        '<hr style="border:none;border-top:1px solid #e2e8f0;margin:20px 0 10px;" />'
        '<p style="color:#94a3b8;font-size:11px;">This digest was generated automatically.</p>'
        "</div></body></html>"
    )
