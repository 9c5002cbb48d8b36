"""Concurrent batch document pipeline.

Runs OCR -> normalize -> LLM -> extract for several documents at once:
- Semaphore-bounded concurrency (default 3 documents in flight)
- Per-document failure isolation; outcomes keyed by document_id
- Thin tenacity retry around provider calls
- Emergency indicator mining when the LLM call is unavailable or its
  response is unusable
"""

import asyncio
import time
from typing import Any, Callable, List, Optional, Protocol

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from medparse.models.batch import BatchSummary, DocumentJob, DocumentOutcome
from medparse.models.config import ConcurrencyConfig
from medparse.models.extraction import ExtractionResult, ExtractionTarget
from medparse.models.ocr import NormalizedDocument
from medparse.observability.context import correlation_id_context
from medparse.observability.metrics import (
    DOCUMENT_PROCESSING_DURATION,
    DOCUMENTS_PROCESSED,
    EXTRACTION_STRATEGY,
    OCR_LINES,
    PROVIDER_FAILURES,
)
from medparse.services.extraction.extractor import ResilientExtractor
from medparse.services.extraction.health import finalize_health_analysis
from medparse.services.extraction.synonyms import build_health_analysis_target
from medparse.services.indicators.miner import mine_indicators
from medparse.services.layout.azure_adapter import parse_azure_read_result
from medparse.services.layout.line_views import build_analysis_prompt, lines_from_texts
from medparse.services.layout.normalizer import LayoutNormalizer
from medparse.utils.exceptions import ProviderUnavailableError

logger = structlog.get_logger()

Finalizer = Callable[[ExtractionResult], ExtractionResult]


class OCRProvider(Protocol):
    """Anything that turns a document payload into an Azure Read style result."""

    async def recognize(self, document: Any) -> Any:
        ...


class LLMProvider(Protocol):
    """Anything that answers a prompt with free-form text."""

    async def complete(self, prompt: str) -> str:
        ...


class BatchPipeline:
    """Bounded-concurrency pipeline over a batch of documents.

    Document pipelines share no mutable state; each one reports its own
    DocumentOutcome and a failure in one never cancels the others.
    """

    def __init__(
        self,
        ocr_provider: OCRProvider,
        llm_provider: LLMProvider,
        normalizer: Optional[LayoutNormalizer] = None,
        extractor: Optional[ResilientExtractor] = None,
        target: Optional[ExtractionTarget] = None,
        config: Optional[ConcurrencyConfig] = None,
        finalizer: Optional[Finalizer] = None,
    ):
        """Initialize batch pipeline.

        Args:
            ocr_provider: Async OCR collaborator
            llm_provider: Async LLM collaborator
            normalizer: Layout normalizer (default settings when omitted)
            extractor: Resilient extractor (default settings when omitted)
            target: Extraction target; the health-analysis target by default
            config: Concurrency and retry configuration
            finalizer: Post-processing applied to each extraction result.
                Defaults to health-analysis finalization for the default target.
        """
        self.ocr_provider = ocr_provider
        self.llm_provider = llm_provider
        self.normalizer = normalizer or LayoutNormalizer()
        self.extractor = extractor or ResilientExtractor()
        self.config = config or ConcurrencyConfig()

        if target is None:
            target = build_health_analysis_target()
            if finalizer is None:
                finalizer = finalize_health_analysis
        self.target = target
        self.finalizer = finalizer

        self.document_sem = asyncio.Semaphore(self.config.max_concurrent_documents)

        logger.info(
            "batch_pipeline_initialized",
            max_concurrent_documents=self.config.max_concurrent_documents,
            target=self.target.name,
        )

    async def run(self, jobs: List[DocumentJob]) -> BatchSummary:
        """Process every job and collect the outcomes.

        Args:
            jobs: Documents to process

        Returns:
            BatchSummary with one outcome per job, in job order
        """
        start_time = time.time()
        logger.info("batch_started", total_documents=len(jobs))

        outcomes = await asyncio.gather(*(self._guarded(job) for job in jobs))

        summary = BatchSummary(
            total=len(outcomes),
            succeeded=sum(1 for o in outcomes if o.status == "success"),
            failed=sum(1 for o in outcomes if o.status == "failed"),
            degraded=sum(
                1 for o in outcomes if o.extraction is not None and o.extraction.degraded
            ),
            outcomes=list(outcomes),
            duration_seconds=time.time() - start_time,
        )

        logger.info(
            "batch_completed",
            total=summary.total,
            succeeded=summary.succeeded,
            failed=summary.failed,
            degraded=summary.degraded,
            duration_seconds=round(summary.duration_seconds, 3),
        )
        return summary

    async def _guarded(self, job: DocumentJob) -> DocumentOutcome:
        async with self.document_sem:
            with correlation_id_context(f"doc-{job.document_id}"):
                return await self.process_document(job)

    async def process_document(self, job: DocumentJob) -> DocumentOutcome:
        """Run one document end to end, capturing any failure in the outcome."""
        start_time = time.time()
        logger.info("document_started", document_id=job.document_id)

        try:
            outcome = await self._process(job)
        except Exception as e:
            logger.error(
                "document_failed",
                document_id=job.document_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            outcome = DocumentOutcome(
                document_id=job.document_id,
                file_name=job.file_name,
                status="failed",
                error=str(e) or type(e).__name__,
            )

        duration = time.time() - start_time
        outcome.duration_seconds = duration
        DOCUMENTS_PROCESSED.labels(status=outcome.status).inc()
        DOCUMENT_PROCESSING_DURATION.observe(duration)

        logger.info(
            "document_completed",
            document_id=job.document_id,
            status=outcome.status,
            nothing_detected=outcome.nothing_detected,
            duration_seconds=round(duration, 3),
        )
        return outcome

    async def _process(self, job: DocumentJob) -> DocumentOutcome:
        document = await self._load_document(job)
        OCR_LINES.observe(len(document.lines))

        if document.is_empty:
            logger.warning("nothing_detected", document_id=job.document_id)
            return DocumentOutcome(
                document_id=job.document_id,
                file_name=job.file_name,
                status="success",
                quality=document.quality,
                nothing_detected=True,
            )

        extraction = await self._analyze(job, document)
        EXTRACTION_STRATEGY.labels(strategy=extraction.strategy_used.value).inc()

        return DocumentOutcome(
            document_id=job.document_id,
            file_name=job.file_name,
            status="success",
            extraction=extraction,
            quality=document.quality,
        )

    async def _load_document(self, job: DocumentJob) -> NormalizedDocument:
        if job.edited_texts is not None:
            logger.info(
                "ocr_skipped_for_edits",
                document_id=job.document_id,
                lines=len(job.edited_texts),
            )
            return lines_from_texts(job.edited_texts, self.normalizer.settings)

        try:
            raw = await self._call_with_retry(self.ocr_provider.recognize, job.payload)
        except ProviderUnavailableError:
            PROVIDER_FAILURES.labels(provider="ocr").inc()
            raise

        return self.normalizer.normalize(parse_azure_read_result(raw))

    async def _analyze(
        self, job: DocumentJob, document: NormalizedDocument
    ) -> ExtractionResult:
        prompt = build_analysis_prompt(document)
        try:
            response = await self._call_with_retry(self.llm_provider.complete, prompt)
        except ProviderUnavailableError as e:
            PROVIDER_FAILURES.labels(provider="llm").inc()
            indicators = mine_indicators(document.text)
            logger.warning(
                "llm_unavailable_mining_indicators",
                document_id=job.document_id,
                error=str(e),
                indicators=len(indicators),
            )
            return self.extractor.extract("", self.target, fallback_context=indicators)

        # Mined indicators only surface when the response itself is unusable
        result = self.extractor.extract(
            response, self.target, fallback_context=mine_indicators(document.text)
        )
        if self.finalizer is not None:
            result = self.finalizer(result)
        return result

    async def _call_with_retry(self, func: Callable[..., Any], *args: Any) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.provider_retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self.config.provider_retry_min_wait_seconds,
                max=self.config.provider_retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type(ProviderUnavailableError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await func(*args)
