"""
Report Sections

Ordered section model shared by every export format, so text, HTML and PDF
always agree on which sections appear and in what order.
"""

from dataclasses import dataclass, field
from datetime import datetime

from medscribe.report.report_types import (
    NOT_AVAILABLE,
    NOT_PROVIDED,
    Medication,
    PatientSnapshot,
    Report,
)

GENDER_LABELS = {
    "male": "Male",
    "female": "Female",
    "child-male": "Child (Male)",
    "child-female": "Child (Female)",
    "other": "Other",
}

VITAL_LABELS = (
    ("blood_pressure", "Blood Pressure", "mmHg"),
    ("pulse", "Pulse", "bpm"),
    ("temperature", "Temperature", "°F"),
    ("spo2", "SpO2", "%"),
    ("weight", "Weight", "kg"),
    ("height", "Height", "cm"),
    ("respiratory_rate", "Respiratory Rate", "/min"),
)


@dataclass(frozen=True)
class Branding:
    """Header and footer text for exported documents."""

    title: str = "PRESCRIPTION REPORT"
    brand_name: str = "MedScribe AI"
    contact_lines: tuple[str, ...] = ()
    disclaimer: str = "AI-generated report. Doctor verification required."
    # Header band colour (hex)
    primary_color: str = "#0F766E"


@dataclass(frozen=True)
class Section:
    """One report section.

    ``kind`` is ``fields`` (label/value pairs), ``text`` (a paragraph),
    ``list`` (bullets) or ``medications``.
    """

    key: str
    title: str
    kind: str
    text: str = ""
    items: tuple[str, ...] = ()
    fields: tuple[tuple[str, str], ...] = ()
    medications: tuple[Medication, ...] = field(default_factory=tuple)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the same way in every format."""
    return value.strftime("%d/%m/%Y, %I:%M %p")


def patient_fields(snapshot: PatientSnapshot) -> tuple[tuple[str, str], ...]:
    details = snapshot.details
    return (
        ("Name", details.name.strip() or NOT_PROVIDED),
        ("Age", details.age.strip() or NOT_AVAILABLE),
        ("Gender", GENDER_LABELS.get(details.gender, details.gender) or NOT_AVAILABLE),
        ("Address", details.address.strip() or NOT_AVAILABLE),
        ("Occupation", details.occupation.strip() or NOT_AVAILABLE),
    )


def vital_fields(snapshot: PatientSnapshot) -> tuple[tuple[str, str], ...]:
    """Recorded vitals only, with units."""
    values = []
    for name, label, unit in VITAL_LABELS:
        value = getattr(snapshot.vitals, name).strip()
        if value:
            values.append((label, f"{value} {unit}"))
    return tuple(values)


def build_sections(report: Report, snapshot: PatientSnapshot) -> list[Section]:
    """Build the ordered section list for a report.

    Birth history appears only for children and pregnancy history only for
    adult women.
    """
    sections = [
        Section("patient", "Patient Details", "fields", fields=patient_fields(snapshot)),
        Section("vitals", "Vitals", "fields", fields=vital_fields(snapshot), text="Not recorded"),
        Section("symptoms", "Symptoms", "list", items=report.patient_info.symptoms, text="None reported"),
        Section("condition", "Current Condition", "text", text=report.patient_info.current_condition),
        Section("medical_history", "Medical History", "text", text=report.patient_info.medical_history),
        Section("past_history", "Past History", "text", text=report.past_history),
        Section("drug_history", "Drug History", "text", text=report.drug_history),
        Section("vaccination_history", "Vaccination History", "text", text=report.vaccination_history),
    ]

    if snapshot.is_child:
        sections.append(
            Section("birth_history", "Birth History", "text", text=report.children_birth_history)
        )
    if snapshot.is_female and not snapshot.is_child:
        sections.append(
            Section("pregnancy_history", "Pregnancy History", "text", text=report.pregnancy_history)
        )

    sections.extend(
        [
            Section("family_history", "Family History", "text", text=report.family_history),
            Section("investigations", "Investigations", "list", items=report.investigations, text="None advised"),
            Section("diagnosis", "Diagnosis", "text", text=report.diagnosis),
            Section("medications", "Medications", "medications", medications=report.medications, text="None prescribed"),
            Section("advice", "Advice", "list", items=report.advice, text="None"),
            Section("diet_chart", "Diet Chart", "list", items=report.diet_chart, text="No specific diet advised"),
            Section("follow_up", "Follow-up", "text", text=report.follow_up),
        ]
    )
    return sections


def medication_lines(index: int, med: Medication) -> list[str]:
    """Numbered medication block as plain lines."""
    return [
        f"{index}. {med.name or 'Unnamed medication'}",
        f"   Dosage: {med.dosage or '-'}",
        f"   Frequency: {med.frequency or '-'}",
        f"   Duration: {med.duration or '-'}",
        f"   Instructions: {med.instructions or '-'}",
    ]
