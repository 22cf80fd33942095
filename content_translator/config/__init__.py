"""
Content Translator - Configuration Module
"""
from content_translator.config.settings import Config, config
from content_translator.config.constants import (
    DEFAULT_LANGUAGES,
    EvaluationStatus,
    JobStatus,
    PipelineAction,
    LogLevel
)

__all__ = [
    "Config",
    "config",
    "DEFAULT_LANGUAGES",
    "EvaluationStatus",
    "JobStatus",
    "PipelineAction",
    "LogLevel"
]
