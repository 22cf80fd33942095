"""
Content Translator - Multilingual content translation pipeline
==============================================================
Keeps every enabled language of a content store in step with the source
language:
1. Key sync
2. Batched AI translation
3. Quality evaluation and approval
4. Health checks and remediation
"""

__version__ = "1.0.0"

from content_translator.app import create_app, run_server

__all__ = ["create_app", "run_server", "__version__"]
