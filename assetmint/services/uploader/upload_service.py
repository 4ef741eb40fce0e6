import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import nullcontext
from typing import Callable, Iterator, List, Optional

from assetmint.config import settings
from assetmint.core.cancellation import CancellationToken, interrupt_scope
from assetmint.core.exceptions import ConfigurationError, TransientIOError
from assetmint.models.upload import (
    BatchReport,
    UploadFailure,
    UploadOutcome,
    UploadRequest,
    UploadSuccess,
)
from assetmint.services.uploader.file_manager import FileManager
from assetmint.services.uploader.interfaces import FileResolver, StorageBackend

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[UploadOutcome], None]


class _ReportCollector:
    """Append-only outcome lists shared by the members of a chunk"""

    def __init__(self):
        self._lock = threading.Lock()
        self._uploaded: List[UploadSuccess] = []
        self._failed: List[UploadFailure] = []

    def record(self, outcome: UploadOutcome) -> None:
        with self._lock:
            if isinstance(outcome, UploadSuccess):
                self._uploaded.append(outcome)
            else:
                self._failed.append(outcome)

    def report(self) -> BatchReport:
        with self._lock:
            return BatchReport(uploaded=tuple(self._uploaded), failed=tuple(self._failed))


class BatchUploadOrchestrator:
    """
    Uploads a batch of requests with bounded concurrency.

    Requests are split into chunks of `chunk_size`. Chunks run one after
    another and every member of a chunk runs concurrently, so the backend
    never sees more than `chunk_size` uploads in flight. Each request ends
    up as a success or a failure in the report; one bad file never affects
    its siblings and nothing is retried.
    """

    def __init__(self,
                 backend: StorageBackend,
                 resolver: Optional[FileResolver] = None,
                 chunk_size: Optional[int] = None,
                 handle_interrupts: bool = True):
        self.backend = backend
        self.resolver = resolver or FileManager()
        self.chunk_size = chunk_size if chunk_size is not None else settings.upload_chunk_size
        self.handle_interrupts = handle_interrupts

        if self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be at least 1, got {self.chunk_size}")

    def run(self,
            requests: List[UploadRequest],
            cancel: Optional[CancellationToken] = None,
            on_progress: Optional[OutcomeCallback] = None) -> BatchReport:
        """
        Upload every request and return the partitioned report.

        Cancellation is checked before each chunk starts. A chunk that has
        already started is drained; requests in later chunks are left out of
        the report entirely.
        """
        cancel = cancel or CancellationToken()
        collector = _ReportCollector()
        scope = interrupt_scope(cancel) if self.handle_interrupts else nullcontext(cancel)

        logger.info(f"Uploading {len(requests)} files in chunks of {self.chunk_size}")
        with scope:
            for start, chunk in self._chunks(requests):
                if cancel.cancelled:
                    logger.info(f"Upload cancelled, {len(requests) - start} files not attempted")
                    break
                self._run_chunk(chunk, cancel, collector, on_progress)

        report = collector.report()
        logger.info(f"Batch finished: {len(report.uploaded)} uploaded, {len(report.failed)} failed")
        return report

    def _chunks(self, requests: List[UploadRequest]) -> Iterator:
        for start in range(0, len(requests), self.chunk_size):
            yield start, requests[start:start + self.chunk_size]

    def _run_chunk(self,
                   chunk: List[UploadRequest],
                   cancel: CancellationToken,
                   collector: _ReportCollector,
                   on_progress: Optional[OutcomeCallback]) -> None:
        with ThreadPoolExecutor(max_workers=len(chunk)) as executor:
            futures = [executor.submit(self._process, request, cancel) for request in chunk]
            for future in as_completed(futures):
                outcome = future.result()
                collector.record(outcome)
                if on_progress:
                    try:
                        on_progress(outcome)
                    except Exception as e:
                        logger.error(f"Progress callback failed: {e}")

    def _process(self, request: UploadRequest, cancel: CancellationToken) -> UploadOutcome:
        """Resolve and upload one request. Every error becomes a failure record."""
        source = request.source
        try:
            request.validate()
            file = self.resolver.resolve(request)
            uri = self.backend.upload(
                file,
                on_progress=lambda progress: logger.debug(f"Upload progress for {source}: {progress}%"),
                cancel=cancel
            )
            if not uri:
                raise TransientIOError("Upload failed without a specific error.")
        except Exception as e:
            logger.error(f"Error uploading {source}: {e}")
            return UploadFailure(
                original_source=source,
                error_message=str(e) or type(e).__name__,
                file_name=request.file_name
            )

        logger.info(f"Uploaded {source} to {uri}")
        return UploadSuccess(uri=uri, original_source=source, content_type=file.content_type)
