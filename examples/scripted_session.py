#!/usr/bin/env python3
"""
Scripted Session Example

Drives a full consultation through a recorded recognizer script: the
controller restarts the recognizer after silences, the transcript fills up,
and the report is exported as HTML and PDF.

Usage:
    python examples/scripted_session.py [--remote]

Requirements:
    - MEDSCRIBE_API_KEY environment variable set, or a running
      `medscribe serve` backend when --remote is given
"""

from pathlib import Path
import sys

from medscribe import AppConfig, ConsultationSession
from medscribe.pipeline import load_config
from medscribe.report import ChatCompletionClient, PrescriptionClient, PrescriptionService
from medscribe.transcription import ManualScheduler, ScriptedSpeechService, load_script

HERE = Path(__file__).parent


def main():
    config = AppConfig.from_env(load_config(HERE / "config.yaml"))
    if "--remote" in sys.argv:
        client = PrescriptionClient(config.generation.client_config())
    else:
        client = PrescriptionService(ChatCompletionClient(config.generation.chat_config()))

    scheduler = ManualScheduler()
    speech = ScriptedSpeechService()
    session = ConsultationSession(speech, client, config=config, scheduler=scheduler)
    session.update_patient(age="6", gender="child-male")
    session.update_vitals(temperature="101.2", weight="20")

    script = load_script(HERE / "consultation.yaml")
    speech.schedule(
        script,
        scheduler,
        commands={"start": session.start_recording, "stop": session.stop_recording},
    )
    scheduler.advance(script.duration + 1.0)

    print(f"Recognizer starts: {speech.start_calls}")
    for entry in session.transcript:
        print(f"  [{entry.id}] {entry.text}")

    session.generate_report()
    output_dir = HERE / "output"
    output_dir.mkdir(exist_ok=True)
    session.export_report("html", output_dir / "prescription.html")
    session.export_report("pdf", output_dir / "prescription.pdf")
    print(f"Saved report to {output_dir}")

    for note in session.drain_notifications():
        print(f"{note.level}: {note.message}")


if __name__ == "__main__":
    main()
