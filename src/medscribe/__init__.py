"""
MedScribe

Consultation transcription and structured prescription reports.

Usage:
    from medscribe import ConsultationSession, AppConfig
    from medscribe.report import PrescriptionClient

    session = ConsultationSession(recognizer_factory, PrescriptionClient())
    session.update_patient(name="Asha", age="34", gender="female")
    session.start_recording()
    ...
    session.stop_recording()
    report = session.generate_report()
    print(session.export_report("text"))

Author: MedScribe contributors
License: CC BY 4.0
"""

from medscribe.pipeline.config import AppConfig
from medscribe.pipeline.session import ConsultationSession

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "ConsultationSession",
    "__version__",
]
