"""
Translation Instructions
========================
Builds the system instruction sent with every translation batch.
"""
from typing import Dict, List, Optional

from content_translator.config.constants import (
    PRESERVED_TERMS,
    COMPOUNDING_LANGUAGES,
    LANGUAGE_GUIDES
)

TONE_GUIDE = """You are translating website content for an automotive service technology platform.

TONE OF VOICE PRINCIPLES:
1. Intelligent Confidence - Expert but never condescending
2. Design-Led Simplicity - Clear, concise, jargon-free
3. Operational Directness - Action-focused, results-driven

TRANSLATION RULES:
- Use declarative statements (not questions)
- Keep sentences short and punchy
- Avoid corporate buzzwords
- Preserve ALL HTML tags and placeholders exactly as they appear (e.g. <strong>, {variable}, %s)
- Maintain the same level of formality as the source

TEXT TYPE ADAPTATION:
- Headlines: Punchy, benefit-driven, max 60 chars
- Buttons: Action verbs, 2-4 words
- Descriptions: Clear benefits, 120-160 chars
- Error messages: Clear, solution-focused"""

COMPOUND_GUIDE = """PHRASE-LEVEL ADAPTATION (NOT WORD-FOR-WORD):
Multi-word English phrases often become a SINGLE compound word in this language.
Translate the phrase, never word by word:
- "Operations platform" -> Norwegian "driftsplattform" (NOT "operasjoner plattform")
- "Customer portal" -> Swedish "kundportalen" (NOT "kund portal")
- "User experience" -> German "Benutzererfahrung" (NOT "Benutzer Erfahrung")"""


class InstructionBuilder:
    """Assembles tone, terminology and per-language rules into one instruction."""

    def __init__(
        self,
        preserved_terms: Optional[List[str]] = None,
        language_guides: Optional[Dict[str, str]] = None
    ):
        self.preserved_terms = list(preserved_terms if preserved_terms is not None else PRESERVED_TERMS)
        self.language_guides = dict(language_guides if language_guides is not None else LANGUAGE_GUIDES)

    def add_term(self, term: str):
        """Add a term that must stay untranslated."""
        if term not in self.preserved_terms:
            self.preserved_terms.append(term)

    def terminology_section(self) -> str:
        if not self.preserved_terms:
            return ""
        lines = ["TECHNICAL GLOSSARY (KEEP EXACTLY AS WRITTEN, NEVER TRANSLATE):"]
        for term in self.preserved_terms:
            lines.append(f"  - {term}")
        return "\n".join(lines)

    def build(self, target_language: str) -> str:
        """
        Build the system instruction for a target language.

        Args:
            target_language: Language code the batch is translated into

        Returns:
            Instruction text
        """
        language = target_language.split('-')[0]
        sections = [TONE_GUIDE]

        terminology = self.terminology_section()
        if terminology:
            sections.append(terminology)

        if language in COMPOUNDING_LANGUAGES:
            sections.append(COMPOUND_GUIDE)

        guide = self.language_guides.get(language)
        if guide:
            sections.append(guide)

        sections.append(
            "When translating, adapt idioms naturally to the target language "
            "while preserving meaning and tone."
        )
        return "\n\n".join(sections)
