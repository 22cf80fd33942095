"""
Health Data Models
==================
Corpus health classification and remediation reports.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from content_translator.models.translation import TranslateJobResult


@dataclass
class HealthSnapshot:
    """Counts per health class. Derived, never persisted."""
    broken_count: int = 0
    missing_count: int = 0
    stale_count: int = 0
    orphaned_count: int = 0
    healthy_count: int = 0
    total_count: int = 0

    @property
    def has_issues(self) -> bool:
        return bool(self.broken_count or self.missing_count or self.stale_count or self.orphaned_count)

    def to_dict(self) -> dict:
        return {
            'brokenCount': self.broken_count,
            'missingCount': self.missing_count,
            'staleCount': self.stale_count,
            'orphanedCount': self.orphaned_count,
            'healthyCount': self.healthy_count,
            'totalCount': self.total_count,
        }


@dataclass
class HealthReport:
    """Per-row classification behind a snapshot."""
    broken: List[Tuple[str, str]] = field(default_factory=list)
    stale: Dict[str, List[str]] = field(default_factory=dict)
    orphaned: List[Tuple[str, str]] = field(default_factory=list)
    missing: Dict[str, List[str]] = field(default_factory=dict)
    total_count: int = 0

    def snapshot(self) -> HealthSnapshot:
        broken = len(self.broken)
        stale = sum(len(keys) for keys in self.stale.values())
        orphaned = len(self.orphaned)
        return HealthSnapshot(
            broken_count=broken,
            missing_count=sum(len(keys) for keys in self.missing.values()),
            stale_count=stale,
            orphaned_count=orphaned,
            healthy_count=self.total_count - broken - stale - orphaned,
            total_count=self.total_count,
        )


@dataclass
class LanguageRemediation:
    """Re-translation outcome for a single language."""
    language: str
    requested: int
    jobs: List[TranslateJobResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def translated(self) -> int:
        return sum(job.translated for job in self.jobs)

    @property
    def failed(self) -> int:
        if self.error:
            return self.requested - self.translated
        return sum(job.failed for job in self.jobs)

    def to_dict(self) -> dict:
        result = {
            'language': self.language,
            'requested': self.requested,
            'translated': self.translated,
            'failed': self.failed,
            'jobs': [job.to_dict() for job in self.jobs],
        }
        if self.error:
            result['error'] = self.error
        return result


@dataclass
class FixReport:
    """Outcome of the two-phase fix procedure."""
    deleted_broken: int = 0
    languages: List[LanguageRemediation] = field(default_factory=list)
    orphaned: List[Tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'deletedBroken': self.deleted_broken,
            'retranslated': [lang.to_dict() for lang in self.languages],
            'orphaned': [{'key': key, 'language': lang} for key, lang in self.orphaned],
        }


@dataclass
class RetranslateReport:
    """Outcome of a full-corpus re-translation."""
    languages: List[LanguageRemediation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'languages': [lang.to_dict() for lang in self.languages],
            'translated': sum(lang.translated for lang in self.languages),
            'failed': sum(lang.failed for lang in self.languages),
        }
