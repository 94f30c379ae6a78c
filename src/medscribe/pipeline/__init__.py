"""
Pipeline Module

Consultation orchestration and application configuration.
"""

from medscribe.pipeline.config import AppConfig, load_config
from medscribe.pipeline.session import ConsultationSession, Notification

__all__ = [
    "AppConfig",
    "ConsultationSession",
    "Notification",
    "load_config",
]
