"""
Report Data Types

Patient snapshot and the structured prescription report returned by the
language model.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Iterable

NOT_DISCUSSED = "Not discussed"
NOT_APPLICABLE = "Not applicable"
NOT_PROVIDED = "Not provided"
NOT_AVAILABLE = "N/A"

HISTORY_FIELDS = (
    "past_history",
    "drug_history",
    "vaccination_history",
    "children_birth_history",
    "pregnancy_history",
    "family_history",
)

GENDER_OPTIONS = ("male", "female", "child-male", "child-female", "other")


def _text(value: Any, default: str = "") -> str:
    """Coerce a JSON value to a stripped string."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return ", ".join(_text(v) for v in value if _text(v))
    return str(value).strip()


def _text_list(value: Any) -> tuple[str, ...]:
    """Coerce a JSON value to a tuple of non-empty strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value.strip(),) if value.strip() else ()
    if isinstance(value, (list, tuple)):
        return tuple(t for t in (_text(v) for v in value) if t)
    text = _text(value)
    return (text,) if text else ()


# =============================================================================
# Patient
# =============================================================================


@dataclass(frozen=True)
class PatientDetails:
    """Demographics as entered on the patient form."""

    name: str = ""
    age: str = ""
    gender: str = ""
    address: str = ""
    occupation: str = ""

    def to_payload(self) -> dict[str, str]:
        """Wire form with explicit placeholders for blank fields."""
        return {
            "name": self.name.strip() or NOT_PROVIDED,
            "age": self.age.strip() or NOT_AVAILABLE,
            "gender": self.gender.strip() or NOT_AVAILABLE,
            "address": self.address.strip() or NOT_AVAILABLE,
            "occupation": self.occupation.strip() or NOT_AVAILABLE,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatientDetails":
        """Create from dictionary."""
        return cls(**{f.name: _text(data.get(f.name)) for f in fields(cls)})


@dataclass(frozen=True)
class Vitals:
    """Vital signs as entered on the patient form."""

    blood_pressure: str = ""  # mmHg
    pulse: str = ""  # bpm
    temperature: str = ""  # °F
    weight: str = ""  # kg
    height: str = ""  # cm
    respiratory_rate: str = ""  # /min
    spo2: str = ""  # %

    _WIRE_NAMES = {
        "blood_pressure": "bloodPressure",
        "pulse": "pulse",
        "temperature": "temperature",
        "weight": "weight",
        "height": "height",
        "respiratory_rate": "respiratoryRate",
        "spo2": "spo2",
    }

    def to_payload(self) -> dict[str, str]:
        """Wire form (camelCase) with ``N/A`` for blank readings."""
        return {
            wire: (getattr(self, name).strip() or NOT_AVAILABLE)
            for name, wire in self._WIRE_NAMES.items()
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vitals":
        """Create from dictionary (accepts snake_case or camelCase keys)."""
        values = {}
        for name, wire in cls._WIRE_NAMES.items():
            values[name] = _text(data.get(name, data.get(wire)))
        return cls(**values)

    def is_empty(self) -> bool:
        return not any(getattr(self, name).strip() for name in self._WIRE_NAMES)


def is_child_gender(gender: str) -> bool:
    return "child" in (gender or "")


def is_female_gender(gender: str) -> bool:
    return gender in ("female", "child-female")


@dataclass(frozen=True)
class PatientSnapshot:
    """Immutable copy of the patient form taken when a report is requested."""

    details: PatientDetails = field(default_factory=PatientDetails)
    vitals: Vitals = field(default_factory=Vitals)
    taken_at: datetime | None = None

    @property
    def is_child(self) -> bool:
        return is_child_gender(self.details.gender)

    @property
    def is_female(self) -> bool:
        return is_female_gender(self.details.gender)

    @classmethod
    def capture(
        cls, details: PatientDetails, vitals: Vitals, taken_at: datetime | None = None
    ) -> "PatientSnapshot":
        """Snapshot the current form values."""
        return cls(
            details=replace(details),
            vitals=replace(vitals),
            taken_at=taken_at or datetime.now(timezone.utc),
        )


# =============================================================================
# Report
# =============================================================================


@dataclass(frozen=True)
class Medication:
    """A prescribed medication. Every field is present, possibly empty."""

    name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Medication":
        """Create from dictionary; missing or null fields become empty strings."""
        return cls(
            name=_text(data.get("name")),
            dosage=_text(data.get("dosage") or data.get("dose")),
            frequency=_text(data.get("frequency")),
            duration=_text(data.get("duration")),
            instructions=_text(data.get("instructions")),
        )


@dataclass(frozen=True)
class PatientFindings:
    """Symptoms and narrative picked out of the consultation."""

    symptoms: tuple[str, ...] = ()
    medical_history: str = NOT_DISCUSSED
    current_condition: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "symptoms": list(self.symptoms),
            "medicalHistory": self.medical_history,
            "currentCondition": self.current_condition,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PatientFindings":
        """Create from dictionary."""
        data = data or {}
        return cls(
            symptoms=_text_list(data.get("symptoms")),
            medical_history=_text(data.get("medicalHistory")) or NOT_DISCUSSED,
            current_condition=_text(data.get("currentCondition")),
        )


@dataclass(frozen=True)
class Report:
    """Structured prescription report.

    List fields are tuples that default to empty; narrative fields are always
    strings, so renderers never need null checks.
    """

    id: str
    generated_at: datetime
    patient_info: PatientFindings = field(default_factory=PatientFindings)
    past_history: str = NOT_DISCUSSED
    drug_history: str = NOT_DISCUSSED
    vaccination_history: str = NOT_DISCUSSED
    children_birth_history: str = NOT_DISCUSSED
    pregnancy_history: str = NOT_DISCUSSED
    family_history: str = NOT_DISCUSSED
    investigations: tuple[str, ...] = ()
    diagnosis: str = ""
    medications: tuple[Medication, ...] = ()
    advice: tuple[str, ...] = ()
    diet_chart: tuple[str, ...] = ()
    follow_up: str = ""
    consultation_transcript: str = ""

    def with_patient_category(self, is_child: bool, is_female: bool) -> "Report":
        """Apply applicability rules to the history sections.

        Birth history only applies to children and pregnancy history only to
        adult women; inapplicable sections get ``Not applicable``. Applicable
        sections left blank get ``Not discussed``.
        """
        values = {name: getattr(self, name).strip() or NOT_DISCUSSED for name in HISTORY_FIELDS}
        if not is_child:
            values["children_birth_history"] = NOT_APPLICABLE
        if is_child or not is_female:
            values["pregnancy_history"] = NOT_APPLICABLE
        return replace(self, **values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire dictionary."""
        return {
            "id": self.id,
            "patientInfo": self.patient_info.to_dict(),
            "pastHistory": self.past_history,
            "drugHistory": self.drug_history,
            "vaccinationHistory": self.vaccination_history,
            "childrenBirthHistory": self.children_birth_history,
            "pregnancyHistory": self.pregnancy_history,
            "familyHistory": self.family_history,
            "investigations": list(self.investigations),
            "diagnosis": self.diagnosis,
            "medications": [m.to_dict() for m in self.medications],
            "advice": list(self.advice),
            "dietChart": list(self.diet_chart),
            "followUp": self.follow_up,
            "generatedAt": self.generated_at.isoformat(),
            "consultationTranscript": self.consultation_transcript,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        report_id: str | None = None,
        generated_at: datetime | None = None,
        transcript: str | None = None,
    ) -> "Report":
        """Create from a model reply or a ``to_dict`` payload.

        Lenient: missing lists become empty, null narratives become sentinel
        or empty strings, and non-dict medication items are skipped.
        """
        if generated_at is None:
            generated_at = _timestamp(data.get("generatedAt"))
        if report_id is None:
            report_id = _text(data.get("id")) or f"rx-{int(generated_at.timestamp() * 1000)}"

        medications = tuple(
            Medication.from_dict(m) for m in _iter_dicts(data.get("medications"))
        )
        patient_info = data.get("patientInfo")
        return cls(
            id=report_id,
            generated_at=generated_at,
            patient_info=PatientFindings.from_dict(patient_info if isinstance(patient_info, dict) else None),
            past_history=_text(data.get("pastHistory")) or NOT_DISCUSSED,
            drug_history=_text(data.get("drugHistory")) or NOT_DISCUSSED,
            vaccination_history=_text(data.get("vaccinationHistory")) or NOT_DISCUSSED,
            children_birth_history=_text(data.get("childrenBirthHistory")) or NOT_DISCUSSED,
            pregnancy_history=_text(data.get("pregnancyHistory")) or NOT_DISCUSSED,
            family_history=_text(data.get("familyHistory")) or NOT_DISCUSSED,
            investigations=_text_list(data.get("investigations")),
            diagnosis=_text(data.get("diagnosis")),
            medications=medications,
            advice=_text_list(data.get("advice")),
            diet_chart=_text_list(data.get("dietChart")),
            follow_up=_text(data.get("followUp")),
            consultation_transcript=(
                transcript if transcript is not None else _text(data.get("consultationTranscript"))
            ),
        )


def _timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp; anything unreadable means now."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return datetime.now(timezone.utc)
    return datetime.now(timezone.utc)


def _iter_dicts(value: Any) -> Iterable[dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return ()
    return [v for v in value if isinstance(v, dict)]


# =============================================================================
# Parse outcome
# =============================================================================


@dataclass(frozen=True)
class ParsedReport:
    """The model reply parsed into a report."""

    report: Report
    is_fallback: bool = field(default=False, init=False)


@dataclass(frozen=True)
class FallbackReport:
    """Substitute report used when the model reply could not be parsed."""

    report: Report
    reason: str = ""
    is_fallback: bool = field(default=True, init=False)


ReportParseResult = ParsedReport | FallbackReport
