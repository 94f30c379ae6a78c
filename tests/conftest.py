"""
Pytest Configuration and Shared Fixtures

Copyright (c) 2025 MedScribe contributors
License: CC BY 4.0
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from medscribe.accounts import Credits, InMemoryAccountProvider, Role, UserSession
from medscribe.report.report_types import (
    PatientDetails,
    PatientSnapshot,
    Report,
    Vitals,
)
from medscribe.transcription.provider import ManualScheduler
from medscribe.transcription.scripted import ScriptedSpeechService
from medscribe.transcription.session_controller import TranscriptionController
from medscribe.transcription.transcript_types import TranscriptEntry, TranscriptLog


FIXED_TIME = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# SPEECH FIXTURES
# =============================================================================


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Virtual-clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def speech_service() -> ScriptedSpeechService:
    """Scripted recognizer factory."""
    return ScriptedSpeechService()


@pytest.fixture
def clock(scheduler: ManualScheduler):
    """Clock that follows the virtual scheduler time."""
    return lambda: FIXED_TIME + timedelta(seconds=scheduler.now)


@pytest.fixture
def transcript_log() -> TranscriptLog:
    """Empty transcript log."""
    return TranscriptLog()


@pytest.fixture
def controller(
    speech_service: ScriptedSpeechService,
    scheduler: ManualScheduler,
    clock,
    transcript_log: TranscriptLog,
) -> TranscriptionController:
    """Controller wired to the scripted service and virtual clock."""
    states = []
    controller = TranscriptionController(
        speech_service,
        language_code="en",
        on_transcription=transcript_log.append,
        on_state_change=states.append,
        scheduler=scheduler,
        clock=clock,
    )
    controller.observed_states = states
    return controller


# =============================================================================
# TRANSCRIPT FIXTURES
# =============================================================================


@pytest.fixture
def sample_transcript_lines() -> list[str]:
    """Consultation transcript, one committed segment per line."""
    return [
        "Child has had fever for three days with a dry cough.",
        "No vomiting. Eating less than usual.",
        "Start paracetamol syrup 5 ml three times a day for three days.",
    ]


@pytest.fixture
def sample_entries(sample_transcript_lines: list[str]) -> list[TranscriptEntry]:
    """Committed transcript entries."""
    return [
        TranscriptEntry(
            id=f"trans-{i}",
            text=text,
            timestamp=FIXED_TIME + timedelta(seconds=i),
            language_code="en",
        )
        for i, text in enumerate(sample_transcript_lines, 1)
    ]


# =============================================================================
# PATIENT FIXTURES
# =============================================================================


@pytest.fixture
def adult_female_snapshot() -> PatientSnapshot:
    """Adult female patient with partial vitals."""
    return PatientSnapshot(
        details=PatientDetails(name="Asha Rao", age="34", gender="female", occupation="Accountant"),
        vitals=Vitals(blood_pressure="120/80", pulse="78"),
        taken_at=FIXED_TIME,
    )


@pytest.fixture
def child_snapshot() -> PatientSnapshot:
    """Child patient without a name."""
    return PatientSnapshot(
        details=PatientDetails(age="6", gender="child-male"),
        vitals=Vitals(temperature="101.2", weight="20"),
        taken_at=FIXED_TIME,
    )


@pytest.fixture
def adult_male_snapshot() -> PatientSnapshot:
    """Adult male patient with an empty form."""
    return PatientSnapshot(
        details=PatientDetails(gender="male"),
        taken_at=FIXED_TIME,
    )


# =============================================================================
# REPORT FIXTURES
# =============================================================================


@pytest.fixture
def sample_report_payload() -> dict[str, Any]:
    """Model reply in the exact report JSON shape."""
    return {
        "patientInfo": {
            "symptoms": ["Fever", "Dry cough"],
            "medicalHistory": "No chronic illness",
            "currentCondition": "Febrile for three days, feeding reduced",
        },
        "pastHistory": "Not discussed",
        "drugHistory": "None",
        "vaccinationHistory": "Up to date",
        "childrenBirthHistory": "Full term normal delivery",
        "pregnancyHistory": "Not applicable",
        "familyHistory": "Not discussed",
        "investigations": ["Complete blood count"],
        "diagnosis": "Acute viral upper respiratory infection",
        "medications": [
            {
                "name": "Paracetamol syrup",
                "dosage": "5 ml",
                "frequency": "Three times a day",
                "duration": "3 days",
                "instructions": "After food",
            }
        ],
        "advice": ["Plenty of fluids", "Rest"],
        "dietChart": ["Soft diet", "Warm soups"],
        "followUp": "Review after 3 days if fever persists",
    }


@pytest.fixture
def sample_report(sample_report_payload: dict[str, Any]) -> Report:
    """Parsed report for a child patient."""
    report = Report.from_dict(
        sample_report_payload,
        report_id="rx-test",
        generated_at=FIXED_TIME,
        transcript="Child has had fever for three days with a dry cough.",
    )
    return report.with_patient_category(is_child=True, is_female=False)


@pytest.fixture
def mock_backend(sample_report_payload: dict[str, Any]) -> MagicMock:
    """Prescription backend returning the sample payload."""
    mock = MagicMock()
    mock.generate.return_value = dict(sample_report_payload)
    return mock


# =============================================================================
# ACCOUNT FIXTURES
# =============================================================================


@pytest.fixture
def signed_in_accounts() -> InMemoryAccountProvider:
    """Regular user with two credits."""
    return InMemoryAccountProvider(
        session=UserSession(user_id="user-1", email="doctor@example.com"),
        role=Role.USER,
        credits=Credits(total=2, used=0),
    )


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Sample application configuration dictionary."""
    return {
        "name": "test-medscribe",
        "version": "1.0.0",
        "transcription": {
            "default_language": "hi",
            "restart_delay_seconds": 0.25,
            "recoverable_error_codes": ["no-speech", "network"],
        },
        "generation": {
            "backend_url": "http://backend.test/api/v1/generate-prescription",
            "timeout_seconds": 30,
            "model_id": "test/model",
        },
        "export": {
            "brand_name": "Test Clinic",
            "contact_lines": ["support@clinic.test"],
            "page_size": "letter",
        },
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, sample_config_dict: dict) -> Path:
    """Create a temporary config file."""
    import yaml

    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment variables out of configuration tests."""
    for name in (
        "MEDSCRIBE_BACKEND_URL",
        "MEDSCRIBE_GATEWAY_URL",
        "MEDSCRIBE_API_KEY",
        "MEDSCRIBE_MODEL_ID",
        "MEDSCRIBE_AUTH_TOKEN",
        "MEDSCRIBE_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# PATH FIXTURES
# =============================================================================


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory."""
    output_dir = tmp_path / "output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir
