"""
Background Jobs
===============
Runs long pipeline jobs in daemon threads, one per job name.
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from content_translator.database.repositories import utcnow
from content_translator.utils.logging import get_logger


@dataclass
class JobRecord:
    """Last known state of a named job."""
    name: str
    cancel_event: threading.Event = field(default_factory=threading.Event)
    thread: Optional[threading.Thread] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Any = None
    error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.finished_at is None and self.started_at is not None

    def to_dict(self) -> dict:
        result = self.result.to_dict() if hasattr(self.result, 'to_dict') else self.result
        return {
            'name': self.name,
            'running': self.running,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'result': result,
            'error': self.error,
        }


class JobManager:
    """
    Starts jobs and hands each one a cancel event.

    With run_inline the job executes in the calling thread, which the
    test client relies on.
    """

    def __init__(self, run_inline: bool = False):
        self.run_inline = run_inline
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()
        self.logger = get_logger().api_logger

    def get(self, name: str) -> Optional[JobRecord]:
        with self._lock:
            return self._jobs.get(name)

    def is_running(self, name: str) -> bool:
        job = self.get(name)
        return job is not None and job.running

    def start(self, name: str, target: Callable[[threading.Event], Any]) -> Optional[JobRecord]:
        """
        Start target(cancel_event) under name.

        Returns:
            The job record, or None if a job with that name is still running
        """
        with self._lock:
            current = self._jobs.get(name)
            if current is not None and current.running:
                return None
            job = JobRecord(name=name, started_at=utcnow())
            self._jobs[name] = job

        def run():
            try:
                job.result = target(job.cancel_event)
            except Exception as e:
                self.logger.error(f"Job {name} failed: {e}")
                job.error = str(e)
            finally:
                job.finished_at = utcnow()

        if self.run_inline:
            run()
        else:
            job.thread = threading.Thread(target=run, name=f"job-{name}")
            job.thread.daemon = True
            job.thread.start()
        self.logger.info(f"Job {name} started")
        return job

    def cancel(self, name: str) -> bool:
        """Signal a running job to stop at its next checkpoint."""
        job = self.get(name)
        if job is None or not job.running:
            return False
        job.cancel_event.set()
        self.logger.info(f"Job {name} cancellation requested")
        return True
