"""
Application Configuration

Configuration management for the consultation pipeline, the report backend
and the exporters.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import os

import yaml

from medscribe.errors import ConfigError
from medscribe.export.sections import Branding
from medscribe.report.client import (
    DEFAULT_GATEWAY_URL,
    DEFAULT_MODEL_ID,
    ChatClientConfig,
    PrescriptionClientConfig,
)
from medscribe.transcription.languages import DEFAULT_LANGUAGE_CODE, is_supported
from medscribe.transcription.session_controller import ControllerConfig

DEFAULT_BACKEND_URL = "http://localhost:8000/api/v1/generate-prescription"


@dataclass
class TranscriptionSettings:
    """Transcription configuration."""

    default_language: str = DEFAULT_LANGUAGE_CODE
    restart_delay_seconds: float = 0.1
    recoverable_error_codes: tuple[str, ...] = ("no-speech",)

    def controller_config(self) -> ControllerConfig:
        return ControllerConfig(
            restart_delay_seconds=self.restart_delay_seconds,
            recoverable_error_codes=tuple(self.recoverable_error_codes),
        )


@dataclass
class GenerationSettings:
    """Report generation configuration."""

    backend_url: str = DEFAULT_BACKEND_URL
    timeout_seconds: float = 180.0
    gateway_url: str = DEFAULT_GATEWAY_URL
    model_id: str = DEFAULT_MODEL_ID
    temperature: float = 0.3
    api_key: str | None = None

    def client_config(self) -> PrescriptionClientConfig:
        return PrescriptionClientConfig(
            backend_url=self.backend_url,
            auth_token=os.environ.get("MEDSCRIBE_AUTH_TOKEN"),
            timeout_seconds=self.timeout_seconds,
        )

    def chat_config(self) -> ChatClientConfig:
        return ChatClientConfig(
            api_key=self.api_key,
            gateway_url=self.gateway_url,
            model_id=self.model_id,
            temperature=self.temperature,
            timeout_seconds=self.timeout_seconds,
        )


@dataclass
class ExportSettings:
    """Export configuration."""

    brand_name: str = "MedScribe AI"
    contact_lines: tuple[str, ...] = ()
    page_size: str = "A4"  # A4, LETTER

    def branding(self) -> Branding:
        return Branding(brand_name=self.brand_name, contact_lines=tuple(self.contact_lines))


@dataclass
class AppConfig:
    """Complete application configuration."""

    name: str = "medscribe"
    version: str = "0.1.0"

    transcription: TranscriptionSettings = field(default_factory=TranscriptionSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    export: ExportSettings = field(default_factory=ExportSettings)

    def __post_init__(self):
        if not is_supported(self.transcription.default_language):
            raise ConfigError(
                f"Unsupported default language: {self.transcription.default_language}"
            )
        if self.transcription.restart_delay_seconds < 0:
            raise ConfigError("restart_delay_seconds must not be negative")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AppConfig":
        """Create config from dictionary."""
        data = data or {}

        transcription = TranscriptionSettings()
        if "transcription" in data:
            trans = data["transcription"] or {}
            transcription = TranscriptionSettings(
                default_language=trans.get("default_language", DEFAULT_LANGUAGE_CODE),
                restart_delay_seconds=float(trans.get("restart_delay_seconds", 0.1)),
                recoverable_error_codes=tuple(trans.get("recoverable_error_codes", ("no-speech",))),
            )

        generation = GenerationSettings()
        if "generation" in data:
            gen = data["generation"] or {}
            generation = GenerationSettings(
                backend_url=gen.get("backend_url", DEFAULT_BACKEND_URL),
                timeout_seconds=float(gen.get("timeout_seconds", 180.0)),
                gateway_url=gen.get("gateway_url", DEFAULT_GATEWAY_URL),
                model_id=gen.get("model_id", DEFAULT_MODEL_ID),
                temperature=float(gen.get("temperature", 0.3)),
                api_key=gen.get("api_key"),
            )

        export = ExportSettings()
        if "export" in data:
            exp = data["export"] or {}
            export = ExportSettings(
                brand_name=exp.get("brand_name", "MedScribe AI"),
                contact_lines=tuple(exp.get("contact_lines", ())),
                page_size=exp.get("page_size", "A4"),
            )

        return cls(
            name=data.get("name", "medscribe"),
            version=data.get("version", "0.1.0"),
            transcription=transcription,
            generation=generation,
            export=export,
        )

    @classmethod
    def from_env(cls, base: "AppConfig | None" = None) -> "AppConfig":
        """Overlay environment variables on ``base`` (or the defaults)."""
        config = base or cls()
        gen = config.generation
        gen.backend_url = os.environ.get("MEDSCRIBE_BACKEND_URL", gen.backend_url)
        gen.gateway_url = os.environ.get("MEDSCRIBE_GATEWAY_URL", gen.gateway_url)
        gen.api_key = os.environ.get("MEDSCRIBE_API_KEY", gen.api_key)
        gen.model_id = os.environ.get("MEDSCRIBE_MODEL_ID", gen.model_id)
        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary. The API key is never serialized."""
        return {
            "name": self.name,
            "version": self.version,
            "transcription": {
                "default_language": self.transcription.default_language,
                "restart_delay_seconds": self.transcription.restart_delay_seconds,
                "recoverable_error_codes": list(self.transcription.recoverable_error_codes),
            },
            "generation": {
                "backend_url": self.generation.backend_url,
                "timeout_seconds": self.generation.timeout_seconds,
                "gateway_url": self.generation.gateway_url,
                "model_id": self.generation.model_id,
                "temperature": self.generation.temperature,
            },
            "export": {
                "brand_name": self.export.brand_name,
                "contact_lines": list(self.export.contact_lines),
                "page_size": self.export.page_size,
            },
        }


def load_config(config_path: str | Path) -> AppConfig:
    """Load configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    return AppConfig.from_dict(data)
