"""
Request Schemas
===============
Validation schemas for API requests.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Any

from content_translator.config import config
from content_translator.config.constants import PipelineAction
from content_translator.utils.validators import validate_translate_request, validate_language_code


@dataclass
class TranslateRequest:
    """Request schema for the translate endpoint."""
    translation_keys: Any
    target_language: Any
    source_language: Any = None

    @classmethod
    def from_json(cls, data: Optional[dict]) -> 'TranslateRequest':
        data = data or {}
        return cls(
            translation_keys=data.get('translationKeys'),
            target_language=data.get('targetLanguage'),
            source_language=data.get('sourceLanguage') or config.pipeline.source_language,
        )

    def validate(self) -> List[str]:
        """Validate the request and return list of errors."""
        _, errors = validate_translate_request(
            self.translation_keys, self.target_language, self.source_language
        )
        return errors


@dataclass
class PipelineRequest:
    """Request schema for the pipeline endpoint."""
    action: Any
    language_codes: Any = None
    options: Any = None

    @classmethod
    def from_json(cls, data: Optional[dict]) -> 'PipelineRequest':
        data = data or {}
        return cls(
            action=data.get('action'),
            language_codes=data.get('languageCodes') or None,
            options=data.get('options'),
        )

    @property
    def auto_approve_threshold(self) -> Optional[float]:
        if isinstance(self.options, dict):
            return self.options.get('autoApproveThreshold')
        return None

    def validate(self) -> List[str]:
        errors = []
        valid_actions = [a.value for a in PipelineAction]
        if self.action not in valid_actions:
            errors.append(f"action must be one of: {', '.join(valid_actions)}")
        if self.language_codes is not None:
            if not isinstance(self.language_codes, list):
                errors.append("languageCodes must be a list")
            else:
                for code in self.language_codes:
                    valid, error = validate_language_code(code)
                    if not valid:
                        errors.append(error)
        if self.options is not None and not isinstance(self.options, dict):
            errors.append("options must be an object")
        threshold = self.auto_approve_threshold
        if threshold is not None and (
            isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 100
        ):
            errors.append("autoApproveThreshold must be a number between 0 and 100")
        return errors
