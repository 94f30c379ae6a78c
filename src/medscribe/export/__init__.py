"""
Report Export

Render a report as plain text, printable HTML or PDF.
"""

from medscribe.export.html import render_html
from medscribe.export.pdf import render_pdf
from medscribe.export.sections import Branding, Section, build_sections
from medscribe.export.text import render_share_text, render_text

EXPORT_FORMATS = ("text", "html", "pdf")

__all__ = [
    "Branding",
    "EXPORT_FORMATS",
    "Section",
    "build_sections",
    "render_html",
    "render_pdf",
    "render_share_text",
    "render_text",
]
