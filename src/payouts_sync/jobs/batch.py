"""Extract-then-process batch job runner."""

import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from ..notifications import Notifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchJobStatus(str, enum.Enum):
    """Status of a batch job run."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_FAILURES = "completed_with_failures"
    FAILED = "failed"


class BatchJobItemResult(BaseModel):
    item_id: str
    success: bool
    error_message: Optional[str] = None


class BatchJobResult(BaseModel):
    """Outcome of one job run."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    job_name: str
    status: BatchJobStatus = BatchJobStatus.IN_PROGRESS
    delta: Optional[datetime] = None
    total_items: int = 0
    processed_items: int = 0
    failed_items: int = 0
    items: List[BatchJobItemResult] = Field(default_factory=list)
    error_message: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def failed_item_ids(self) -> List[str]:
        return [item.item_id for item in self.items if not item.success]

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_name": self.job_name,
            "status": self.status.value,
            "delta": self.delta.isoformat() if self.delta else None,
            "statistics": {
                "total_items": self.total_items,
                "processed_items": self.processed_items,
                "failed_items": self.failed_items,
            },
            "error_message": self.error_message,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def to_full_dict(self) -> Dict[str, Any]:
        data = self.to_summary_dict()
        data["items"] = [item.model_dump() for item in self.items]
        return data


class BatchJob(Generic[T]):
    """Extracts items, then processes them one at a time.

    ``process_item`` returns True on success and False for a failure it has
    already reported. An exception from one item is logged and counted; the
    remaining items still run. A failing extraction fails the whole run.
    """

    def __init__(
        self,
        name: str,
        extract_items: Callable[[Optional[datetime]], List[T]],
        process_item: Callable[[T], bool],
        item_id: Callable[[T], str],
        notifier: Notifier,
    ):
        self.name = name
        self.extract_items = extract_items
        self.process_item = process_item
        self.item_id = item_id
        self.notifier = notifier

    def _process(self, item: T) -> BatchJobItemResult:
        item_id = self.item_id(item)
        try:
            success = bool(self.process_item(item))
        except Exception as e:
            logger.exception(f"Job {self.name}: item {item_id} failed")
            return BatchJobItemResult(item_id=item_id, success=False, error_message=str(e))
        return BatchJobItemResult(item_id=item_id, success=success)

    def run_items(self, items: List[T], result: BatchJobResult) -> BatchJobResult:
        result.total_items = len(items)
        for item in items:
            item_result = self._process(item)
            result.items.append(item_result)
            if item_result.success:
                result.processed_items += 1
            else:
                result.failed_items += 1

        result.status = (
            BatchJobStatus.COMPLETED_WITH_FAILURES if result.failed_items else BatchJobStatus.COMPLETED
        )
        result.completed_at = _utcnow()
        logger.info(
            f"Job {self.name} finished: {result.processed_items} processed, "
            f"{result.failed_items} failed of {result.total_items}"
        )
        return result

    def run(self, delta: Optional[datetime] = None) -> BatchJobResult:
        result = BatchJobResult(job_name=self.name, delta=delta)
        logger.info(f"Job {self.name} started with delta {delta}")
        try:
            items = self.extract_items(delta)
        except Exception as e:
            logger.exception(f"Job {self.name}: extraction failed")
            result.status = BatchJobStatus.FAILED
            result.error_message = str(e)
            result.completed_at = _utcnow()
            self.notifier.send_plain_text(
                f"Issue detected running job {self.name}",
                f"Extraction failed for job {self.name}\n{e}",
            )
            return result
        return self.run_items(items, result)

    def run_with(self, extract: Callable[[], List[T]]) -> BatchJobResult:
        """Run with a one-off extraction, such as a by-id selection."""
        return BatchJob(self.name, lambda _delta: extract(), self.process_item, self.item_id, self.notifier).run()
