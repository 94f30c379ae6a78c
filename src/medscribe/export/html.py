"""
HTML Export

Self-contained HTML page meant for the browser's print-to-PDF dialog.
"""

import html

from medscribe.export.sections import Branding, Section, build_sections, format_timestamp
from medscribe.report.report_types import PatientSnapshot, Report

_STYLE = """
  body {{ font-family: Arial, Helvetica, sans-serif; color: #1f2937; margin: 0; }}
  header {{ background: {color}; color: #fff; padding: 16px 24px; }}
  header h1 {{ margin: 0; font-size: 20px; letter-spacing: 1px; }}
  header p {{ margin: 4px 0 0; font-size: 12px; }}
  main {{ padding: 8px 24px; }}
  section {{ margin: 14px 0; page-break-inside: avoid; }}
  h2 {{ font-size: 14px; color: {color}; border-bottom: 1px solid #e5e7eb; padding-bottom: 4px; }}
  table.fields td {{ padding: 2px 12px 2px 0; font-size: 13px; }}
  table.fields td.label {{ color: #6b7280; }}
  ol.medications li {{ margin-bottom: 8px; font-size: 13px; }}
  footer {{ border-top: 2px solid {color}; margin: 24px; padding-top: 8px; font-size: 11px; color: #6b7280; }}
  @media print {{ header {{ -webkit-print-color-adjust: exact; print-color-adjust: exact; }} }}
"""


def _e(value: str) -> str:
    return html.escape(value or "", quote=True)


def _section_html(section: Section) -> str:
    parts = [f'<section id="{_e(section.key)}">', f"<h2>{_e(section.title)}</h2>"]
    if section.kind == "fields" and section.fields:
        rows = "".join(
            f'<tr><td class="label">{_e(label)}</td><td>{_e(value)}</td></tr>'
            for label, value in section.fields
        )
        parts.append(f'<table class="fields">{rows}</table>')
    elif section.kind == "list" and section.items:
        parts.append("<ul>" + "".join(f"<li>{_e(item)}</li>" for item in section.items) + "</ul>")
    elif section.kind == "medications" and section.medications:
        items = []
        for med in section.medications:
            items.append(
                f"<li><strong>{_e(med.name)}</strong><br>"
                f"Dosage: {_e(med.dosage) or '-'} &middot; Frequency: {_e(med.frequency) or '-'}"
                f" &middot; Duration: {_e(med.duration) or '-'}<br>"
                f"Instructions: {_e(med.instructions) or '-'}</li>"
            )
        parts.append('<ol class="medications">' + "".join(items) + "</ol>")
    else:
        parts.append(f"<p>{_e(section.text) or '-'}</p>")
    parts.append("</section>")
    return "\n".join(parts)


def render_html(report: Report, snapshot: PatientSnapshot, branding: Branding | None = None) -> str:
    """Render a printable HTML document."""
    branding = branding or Branding()
    body = "\n".join(_section_html(s) for s in build_sections(report, snapshot))
    contact = "".join(f"<div>{_e(line)}</div>" for line in branding.contact_lines)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{_e(branding.title.title())} {_e(report.id)}</title>
<style>{_STYLE.format(color=_e(branding.primary_color))}</style>
</head>
<body>
<header>
<h1>{_e(branding.title)}</h1>
<p>{_e(branding.brand_name)} &middot; Report {_e(report.id)} &middot; Generated {_e(format_timestamp(report.generated_at))}</p>
</header>
<main>
{body}
</main>
<footer>
<div>{_e(branding.disclaimer)}</div>
{contact}
</footer>
</body>
</html>
"""
