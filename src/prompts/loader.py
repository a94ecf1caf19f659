from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


def load_prompt(filename: str) -> str:
    """Load a prompt text file shipped with the codebase."""

    prompt_dir = Path(__file__).resolve().parent
    path = prompt_dir / filename
    if not path.exists():
        raise RuntimeError(f"Prompt file not found: {filename}")
    return path.read_text(encoding="utf-8").strip() + "\n"


@dataclass(frozen=True)
class TranslationPrompts:
    calling_party: str  # translates the A leg for the B leg
    called_party: str  # translates the B leg for the A leg


def build_translation_prompts(calling_party_language: str, called_party_language: str) -> TranslationPrompts:
    calling = load_prompt("translate_calling_party.txt")
    called = load_prompt("translate_called_party.txt")
    return TranslationPrompts(
        calling_party=calling.format(source=calling_party_language, target=called_party_language),
        called_party=called.format(source=called_party_language, target=calling_party_language),
    )
