"""
Plain-Text Export

Newline-joined report document with fixed section markers, and a shorter
payload for sharing.
"""

from medscribe.export.sections import (
    Branding,
    Section,
    build_sections,
    format_timestamp,
    medication_lines,
)
from medscribe.report.report_types import PatientSnapshot, Report

RULE = "═" * 39


def _section_lines(section: Section) -> list[str]:
    lines = [f"── {section.title.upper()} ──"]
    if section.kind == "fields":
        if section.fields:
            lines.extend(f"{label}: {value}" for label, value in section.fields)
        else:
            lines.append(section.text)
    elif section.kind == "list":
        if section.items:
            lines.extend(f"• {item}" for item in section.items)
        else:
            lines.append(section.text)
    elif section.kind == "medications":
        if section.medications:
            for i, med in enumerate(section.medications, 1):
                lines.extend(medication_lines(i, med))
        else:
            lines.append(section.text)
    else:
        lines.append(section.text or "-")
    lines.append("")
    return lines


def render_text(report: Report, snapshot: PatientSnapshot, branding: Branding | None = None) -> str:
    """Render the full plain-text document."""
    branding = branding or Branding()
    lines = [
        RULE,
        branding.title.center(len(RULE)).rstrip(),
        branding.brand_name.center(len(RULE)).rstrip(),
        RULE,
        "",
        f"Report ID: {report.id}",
        f"Generated: {format_timestamp(report.generated_at)}",
        "",
    ]
    for section in build_sections(report, snapshot):
        lines.extend(_section_lines(section))

    lines.append(RULE)
    lines.append(branding.disclaimer)
    lines.extend(branding.contact_lines)
    lines.append(RULE)
    return "\n".join(lines)


def render_share_text(report: Report, snapshot: PatientSnapshot, branding: Branding | None = None) -> str:
    """Render a compact payload for share sheets and clipboards."""
    branding = branding or Branding()
    lines = [
        f"{branding.title.title()} - {branding.brand_name}",
        f"Generated: {format_timestamp(report.generated_at)}",
        "",
    ]
    for section in build_sections(report, snapshot):
        lines.extend(_section_lines(section))
    return "\n".join(lines).rstrip() + "\n"
