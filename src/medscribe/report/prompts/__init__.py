"""
Prescription Prompts

Prompt templates sent to the report model. The system prompt fixes the reply
language (English) and the exact JSON shape of a report; the user template
carries the consultation context.
"""

from pathlib import Path

PROMPTS_DIR = Path(__file__).parent

SYSTEM_PROMPT_NAME = "prescription_system"
USER_PROMPT_NAME = "prescription_user"

AVAILABLE_PROMPTS = [
    SYSTEM_PROMPT_NAME,
    USER_PROMPT_NAME,
]


def get_prompt_path(name: str) -> Path:
    """Get the path to a prompt template."""
    return PROMPTS_DIR / f"{name}.txt"


def load_prompt(name: str) -> str:
    """Load a prompt template."""
    path = get_prompt_path(name)
    if not path.exists():
        raise ValueError(f"Unknown prompt: {name}. Available: {AVAILABLE_PROMPTS}")
    return path.read_text(encoding="utf-8")


def system_prompt() -> str:
    """The fixed system prompt for report generation."""
    return load_prompt(SYSTEM_PROMPT_NAME)


def list_prompts() -> list[str]:
    """List available prompt templates."""
    return AVAILABLE_PROMPTS.copy()
