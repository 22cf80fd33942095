"""
Constants and Enums for Content Translator
"""
import re
from enum import Enum
from typing import Dict, List, Tuple

LANGUAGE_CODE_PATTERN = re.compile(r'^[a-z]{2}(-[A-Z]{2})?$')

# (code, name, enabled, show_in_switcher) seeded into the languages table
DEFAULT_LANGUAGES: List[Tuple[str, str, bool, bool]] = [
    ('en', 'English', True, True),
    ('no', 'Norwegian', True, True),
    ('sv', 'Swedish', True, True),
    ('da', 'Danish', True, True),
    ('fi', 'Finnish', True, True),
    ('de', 'German', True, True),
    ('fr', 'French', False, False),
    ('es', 'Spanish', False, False),
    ('it', 'Italian', False, False),
    ('nl', 'Dutch', False, False),
]


class EvaluationStatus(str, Enum):
    """Status of a per-language evaluation run."""
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"


class JobStatus(str, Enum):
    """Outcome of a batched translation job."""
    SUCCESS = "success"
    PARTIAL = "partial"


class PipelineAction(str, Enum):
    """Steps the pipeline runner can execute."""
    SYNC = "sync"
    TRANSLATE = "translate"
    EVALUATE = "evaluate"
    APPROVE = "approve"
    FULL_PIPELINE = "full-pipeline"


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Terms that must appear verbatim in every language
PRESERVED_TERMS: List[str] = [
    'Noddi', 'Navio', 'booking', 'NPS', 'whitelabel', 'dashboard',
    'API', 'CRM', 'ERP', 'ROI', 'SaaS',
]

# Languages that fold multi-word English phrases into single compound words
COMPOUNDING_LANGUAGES = {'no', 'sv', 'da', 'fi', 'de', 'nl'}

LANGUAGE_GUIDES: Dict[str, str] = {
    'no': """Norwegian-specific rules:
- Use "du" form (informal) - Norwegian business culture is informal
- Use Norwegian compound words where natural: "kundeservice", "brukeropplevelse"
- Write Bokmål, not Nynorsk
- Avoid Swedish/Danish spellings""",
    'sv': """Swedish-specific rules:
- Use "du" form (informal) - Swedish business culture is informal
- Use Swedish compound words: "kundservice", "användarupplevelse"
- Avoid Norwegian/Danish spellings""",
    'da': """Danish-specific rules:
- Use "du" form (informal) - Danish business culture is informal
- Use Danish spelling: "kundeservice", "brugeroplevelse"
- Avoid Norwegian/Swedish spellings""",
    'fi': """Finnish-specific rules:
- Use "sinä" form (informal "you")
- Use Finnish compound words: "asiakaspalvelu", "käyttäjäkokemus"
- Maintain case endings consistently""",
    'de': """German-specific rules:
- Use "du" form in marketing copy, "Sie" only in legal text
- Join compound nouns: "Serviceterminierung", "Benutzererfahrung"
- Capitalize nouns correctly""",
}
