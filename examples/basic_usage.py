#!/usr/bin/env python3
"""
Basic Usage Example

Generates a prescription report from a typed transcript and prints the
plain-text document.

Usage:
    python examples/basic_usage.py

Requirements:
    - MEDSCRIBE_API_KEY environment variable set
    - pip install medscribe
"""

from datetime import datetime, timezone

from medscribe import AppConfig, ConsultationSession
from medscribe.report import ChatCompletionClient, PrescriptionService
from medscribe.transcription import TranscriptEntry


def main():
    config = AppConfig.from_env()
    client = PrescriptionService(ChatCompletionClient(config.generation.chat_config()))

    # No recognizer: the transcript is filled in directly
    session = ConsultationSession(None, client, config=config)
    session.update_patient(name="Asha Rao", age="34", gender="female", occupation="Accountant")
    session.update_vitals(blood_pressure="130/85", pulse="88", temperature="99.1")

    segments = [
        "I have had a headache and body ache since yesterday evening.",
        "Mild fever at night, no cough. I am not pregnant.",
        "Take paracetamol 500 mg twice a day after food for three days.",
    ]
    now = datetime.now(timezone.utc)
    for i, text in enumerate(segments, 1):
        session.transcript.append(
            TranscriptEntry(id=f"trans-{i}", text=text, timestamp=now, language_code="en")
        )

    report = session.generate_report()
    print(session.export_report("text"))

    print(f"\n--- {len(report.medications)} medications prescribed ---")


if __name__ == "__main__":
    main()
