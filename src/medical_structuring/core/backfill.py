# ============================================================================
# src/medical_structuring/core/backfill.py
# ============================================================================
"""
FHIR Backfill

Converts completed source documents that have no linked clinical resources
yet. Each document runs: pipeline -> ensure subject -> convert -> persist.

The batch is a fold: one failing document is logged, counted and skipped,
never aborting the rest. Only documents without linked resources are
selected, and the filter runs before the batch limit, so each run picks up
where the previous one stopped and re-running is safe.

With max_workers > 1 documents run on a thread pool; all documents of one
person go to the same worker so their subject is created once, serially.
"""

import logging
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.pipeline_config import pipeline_settings
from ..fhir_utils.builder import FHIRConverter
from ..utils.exceptions import ConfigurationError, MedicalStructuringError
from ..utils.logging import LogAdapter
from .document_pipeline import DocumentPipeline
from .resource_store import ResourceStore

logger = logging.getLogger(__name__)


@dataclass
class DocumentOutcome:
    document_id: str
    success: bool
    resource_count: int = 0
    error: Optional[str] = None


@dataclass
class BackfillSummary:
    """Accumulated result of one backfill run."""
    total_scanned: int = 0
    needing_backfill: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    success: bool = True

    @property
    def message(self) -> str:
        return f"FHIR backfill completed: {self.success_count} successful, {self.error_count} failed"

    def record(self, outcome: DocumentOutcome, error_sample: int) -> None:
        if outcome.success:
            self.success_count += 1
            return
        self.error_count += 1
        if len(self.errors) < error_sample:
            self.errors.append(f"{outcome.document_id}: {outcome.error}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "total_scanned": self.total_scanned,
            "needing_backfill": self.needing_backfill,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "errors": list(self.errors),
            "message": self.message,
            "cancelled": self.cancelled,
        }

    def to_response(self) -> Dict[str, Any]:
        """camelCase view used by the HTTP invocation contract."""
        return {
            "success": self.success,
            "totalScanned": self.total_scanned,
            "needingBackfill": self.needing_backfill,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "errors": list(self.errors),
            "message": self.message,
        }


class BackfillRunner:
    """
    Batch converter for documents missing FHIR resources.
    """

    def __init__(
        self,
        store: ResourceStore,
        pipeline: Optional[DocumentPipeline] = None,
        converter: Optional[FHIRConverter] = None,
    ):
        self.store = store
        self.pipeline = pipeline or DocumentPipeline()
        self.converter = converter or FHIRConverter()
        self.logger = logging.getLogger(__name__)
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Stop scheduling new documents; in-flight documents finish."""
        self.logger.info("Backfill stop requested")
        self._stop_event.set()

    def run(
        self,
        batch_size: Optional[int] = None,
        person_id: Optional[str] = None,
        max_workers: Optional[int] = None,
    ) -> BackfillSummary:
        """
        Backfill one batch.

        Args:
            batch_size: Max documents scanned
            person_id: Restrict to one person
            max_workers: Worker threads (1 = serial)

        Returns:
            BackfillSummary

        Raises:
            ConfigurationError: Non-positive batch size or worker count
        """
        batch_size = pipeline_settings.BACKFILL_BATCH_SIZE if batch_size is None else batch_size
        max_workers = pipeline_settings.BACKFILL_MAX_WORKERS if max_workers is None else max_workers
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive, got {max_workers}")

        self._stop_event.clear()
        documents = self.store.list_completed_documents(batch_size, person_id, unlinked_only=True)
        # re-check: another run may have linked a document since the query
        pending = [doc for doc in documents if not self.store.has_linked_resources(doc["id"])]

        summary = BackfillSummary(total_scanned=len(documents), needing_backfill=len(pending))
        self.logger.info(
            f"Backfill scan: {summary.total_scanned} documents, {summary.needing_backfill} need conversion"
        )

        if max_workers == 1 or len(pending) <= 1:
            outcomes = self._run_serial(pending)
        else:
            outcomes = self._run_parallel(pending, max_workers)

        for outcome in outcomes:
            summary.record(outcome, pipeline_settings.BACKFILL_ERROR_SAMPLE)
        summary.cancelled = self._stop_event.is_set()

        self.logger.info(summary.message)
        return summary

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def _run_serial(self, documents: List[Dict[str, Any]]) -> List[DocumentOutcome]:
        outcomes = []
        for document in documents:
            if self._stop_event.is_set():
                break
            outcomes.append(self.process_document(document))
        return outcomes

    def _run_parallel(self, documents: List[Dict[str, Any]], max_workers: int) -> List[DocumentOutcome]:
        groups: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for document in documents:
            groups.setdefault(document["person_id"], []).append(document)

        self.logger.info(
            f"Backfill running {len(documents)} documents for {len(groups)} people on {max_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="backfill") as executor:
            futures = [executor.submit(self._run_serial, group) for group in groups.values()]
            outcomes: List[DocumentOutcome] = []
            for future in futures:
                outcomes.extend(future.result())
        return outcomes

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------
    def process_document(self, document: Dict[str, Any]) -> DocumentOutcome:
        """Pipeline -> ensure subject -> convert -> persist, for one document."""
        document_id = document["id"]
        person_id = document["person_id"]
        log = LogAdapter(self.logger, {"document_id": document_id})
        try:
            result = self.pipeline.process(document["extracted_text"])
            subject = getattr(result.record, "subject", None)
            profile = self.store.get_profile(person_id)

            subject_id = self.store.ensure_subject(
                person_id,
                lambda candidate_id: self.converter.build_subject(
                    candidate_id, person_id, profile, subject
                ).to_dict(),
                self.converter.new_subject_id(),
            )
            resources = self.converter.convert(result.record, subject_id, document_id=document_id)
            count = self.store.save_resources(person_id, resources)
        except MedicalStructuringError as e:
            log.error(f"Backfill failed for document {document_id}: {e}")
            return DocumentOutcome(document_id, False, error=str(e))
        except Exception as e:
            log.error(f"Unexpected backfill error for document {document_id}: {e}", exc_info=True)
            return DocumentOutcome(document_id, False, error=str(e))

        log.info(
            f"Backfilled document {document_id}: {result.document_type.value}, {count} resources"
        )
        return DocumentOutcome(document_id, True, resource_count=count)
