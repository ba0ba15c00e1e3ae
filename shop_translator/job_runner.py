"""
Job handling around the translation service.

An external executor delivers one ``TranslationMessage`` per job; the runner
moves the job through ``pending -> processing -> completed|failed`` and stores
the service result on it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from shop_translator.models import EntityType, JobStatus
from shop_translator.stores import JobStore
from shop_translator.translation_service import TranslationService

logger = logging.getLogger(__name__)


@dataclass
class TranslationMessage:
    job_id: str
    entity_type: EntityType
    entity_id: str
    target_language_ids: List[str] = field(default_factory=list)
    # Only used for snippet sets.
    target_set_id: Optional[str] = None
    snippet_ids: Optional[List[str]] = None


class JobRunner:

    def __init__(self, service: TranslationService, job_store: JobStore,
                 clock: Callable[[], datetime] = datetime.now):
        self.service = service
        self.job_store = job_store
        self.clock = clock

    def handle(self, message: TranslationMessage) -> None:
        """
        Run the translation for one job.

        Any exception escaping the service marks the job as failed with
        ``{'error': message}``; nothing is re-raised to the executor.
        """
        logger.info("Processing translation job '%s' (%s '%s').",
                    message.job_id, EntityType(message.entity_type).value, message.entity_id)
        self.job_store.update_job(message.job_id, status=JobStatus.PROCESSING, started_at=self.clock())

        try:
            result = self.service.translate_entity(
                message.entity_type,
                message.entity_id,
                message.target_language_ids,
                target_set_id=message.target_set_id,
                snippet_ids=message.snippet_ids,
            )
        except Exception as exc:
            logger.exception("Translation job '%s' failed", message.job_id)
            self.job_store.update_job(
                message.job_id,
                status=JobStatus.FAILED,
                result={'error': str(exc)},
                finished_at=self.clock(),
            )
            return

        self.job_store.update_job(
            message.job_id,
            status=JobStatus.COMPLETED,
            result=result,
            finished_at=self.clock(),
        )
        logger.info("Translation job '%s' completed.", message.job_id)

    def get_jobs_status(self, job_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Status view of the given jobs, keyed by job id. Unknown ids are left out."""
        return {job.id: job.to_status_dict() for job in self.job_store.get_jobs(job_ids)}
