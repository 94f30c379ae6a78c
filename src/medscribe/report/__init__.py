"""
Report Module

Prescription report types, request assembly, reply parsing and the clients
that reach the report model.
"""

from medscribe.report.report_types import (
    NOT_APPLICABLE,
    NOT_DISCUSSED,
    FallbackReport,
    Medication,
    ParsedReport,
    PatientDetails,
    PatientFindings,
    PatientSnapshot,
    Report,
    Vitals,
)
from medscribe.report.assembler import (
    ReportRequest,
    build_messages,
    build_report_request,
    parse_report,
    strip_code_fence,
)
from medscribe.report.client import (
    ChatCompletionClient,
    PrescriptionClient,
    PrescriptionService,
)

__all__ = [
    "NOT_APPLICABLE",
    "NOT_DISCUSSED",
    "FallbackReport",
    "Medication",
    "ParsedReport",
    "PatientDetails",
    "PatientFindings",
    "PatientSnapshot",
    "Report",
    "Vitals",
    "ReportRequest",
    "build_messages",
    "build_report_request",
    "parse_report",
    "strip_code_fence",
    "ChatCompletionClient",
    "PrescriptionClient",
    "PrescriptionService",
]
