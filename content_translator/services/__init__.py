"""
Content Translator - Services
"""
from content_translator.services.ai_client import AIGatewayClient, AIResponse, get_ai_client
from content_translator.services.prompts import InstructionBuilder
from content_translator.services.key_sync import KeySyncEngine
from content_translator.services.translator import BatchTranslator
from content_translator.services.progress import EvaluationProgressTracker
from content_translator.services.evaluator import QualityEvaluator
from content_translator.services.health import HealthCheckAggregator
from content_translator.services.pipeline import PipelineRunner

__all__ = [
    "AIGatewayClient",
    "AIResponse",
    "get_ai_client",
    "InstructionBuilder",
    "KeySyncEngine",
    "BatchTranslator",
    "EvaluationProgressTracker",
    "QualityEvaluator",
    "HealthCheckAggregator",
    "PipelineRunner"
]
