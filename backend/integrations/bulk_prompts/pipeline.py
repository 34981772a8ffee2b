"""
Bulk prompt upload pipeline.

Takes a CSV upload or a list of prompt objects, creates one prompt per row and
optionally attaches a generated thumbnail to each. Rows are processed strictly
one after another to keep the image provider under its rate limit. A failing
row is recorded in the results and never stops the batch.
"""

import asyncio
import json
import logging
import random
import string
from datetime import datetime, timezone
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .csv_parser import tokenize
from .enrichment import ThumbnailEnricher
from .errors import (
    BatchRejectedError,
    PermissionDeniedError,
    RecordNotFoundError,
    RowValidationError,
    ThumbnailGenerationFailedError,
    ThumbnailUnavailableError,
)
from .models import REQUIRED_FIELDS, BatchJob, BatchProgress, BulkPromptInput, ResultEntry
from .normalizer import (
    COLUMN_NAMES,
    HeaderMap,
    comparable_key,
    missing_required_columns,
    normalize,
    normalize_mapping,
)
from .store import RecordStore

logger = logging.getLogger(__name__)

MAX_ROWS = 100
INTER_RECORD_DELAY_SECONDS = 5.0
BATCH_SUFFIX_LENGTH = 7
BASE36_ALPHABET = string.digits + string.ascii_lowercase
OPTIONAL_COLUMNS = [name for field, name in COLUMN_NAMES.items() if field not in REQUIRED_FIELDS]

# Counters copied to initial* fields when positive
INITIAL_COUNTERS = {
    "launchGpt": "initialLaunchGpt",
    "launchGemini": "initialLaunchGemini",
    "launchClaude": "initialLaunchClaude",
    "launchGrok": "initialLaunchGrok",
    "copied": "initialCopied",
    "likes": "initialLikes",
}

T = TypeVar("T")
BatchInput = Union[str, Sequence[Union[Mapping[str, Any], BulkPromptInput]]]
ProgressCallback = Callable[[BatchProgress], None]
SleepFunc = Callable[[float], Awaitable[None]]


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time, timezone-aware."""


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def build_prompt_record(
    prompt: BulkPromptInput,
    author_id: str,
    batch_id: str,
    timestamp: datetime,
) -> Dict[str, Any]:
    """Document stored for one bulk-created prompt."""
    record: Dict[str, Any] = {
        "authorId": author_id,
        "title": prompt.title,
        "content": prompt.content,
        "tag": prompt.tag,
        "views": prompt.views,
        "likes": prompt.likes,
        "launchGpt": prompt.launch_gpt,
        "launchGemini": prompt.launch_gemini,
        "launchClaude": prompt.launch_claude,
        "launchGrok": prompt.launch_grok,
        "copied": prompt.copied,
        "totalLaunch": prompt.total_launch,
        "createdAt": timestamp,
        "updatedAt": timestamp,
        "bulkUploadBatchId": batch_id,
        "isBulkUpload": True,
    }

    for counter, initial_field in INITIAL_COUNTERS.items():
        if record[counter] > 0:
            record[initial_field] = record[counter]

    if prompt.custom_url:
        record["customUrl"] = prompt.custom_url
    if prompt.is_invisible:
        record["isInvisible"] = True

    return record


class _PendingRow:
    __slots__ = ("row_number", "source", "header")

    def __init__(self, row_number: int, source: Any, header: Optional[HeaderMap] = None) -> None:
        self.row_number = row_number
        self.source = source
        self.header = header

    @property
    def title_hint(self) -> str:
        if self.header is not None:
            title = self.header.cell(self.source, "title")
        elif isinstance(self.source, BulkPromptInput):
            title = self.source.title
        elif isinstance(self.source, Mapping):
            title = next(
                (
                    str(value or "").strip()
                    for key, value in self.source.items()
                    if comparable_key(str(key)) == "title"
                ),
                "",
            )
        else:
            title = ""
        return title or "Unknown"

    def normalize(self) -> Optional[BulkPromptInput]:
        if self.header is not None:
            return normalize(self.header, self.source, self.row_number)
        if isinstance(self.source, BulkPromptInput):
            return self.source
        if isinstance(self.source, Mapping):
            return normalize_mapping(self.source, self.row_number)
        raise RowValidationError(self.row_number, REQUIRED_FIELDS)


class BulkPromptPipeline:
    def __init__(
        self,
        store: RecordStore,
        enricher: Optional[ThumbnailEnricher] = None,
        clock: Optional[Clock] = None,
        sleep: SleepFunc = asyncio.sleep,
        inter_record_delay: float = INTER_RECORD_DELAY_SECONDS,
        max_rows: int = MAX_ROWS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.enricher = enricher
        self.clock = clock or SystemClock()
        self.sleep = sleep
        self.inter_record_delay = inter_record_delay
        self.max_rows = max_rows
        self.rng = rng or random.Random()

    def new_batch_id(self) -> str:
        suffix = "".join(self.rng.choice(BASE36_ALPHABET) for _ in range(BATCH_SUFFIX_LENGTH))
        return f"batch-{epoch_millis(self.clock.now())}-{suffix}"

    async def _run_sync(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    # =========================================================================
    # Batch preconditions
    # =========================================================================

    def _prepare(self, rows: BatchInput) -> List[_PendingRow]:
        """Validate batch-level preconditions and list the rows to process."""
        if isinstance(rows, str):
            return self._prepare_csv(rows)

        if not isinstance(rows, Sequence) or len(rows) == 0:
            raise BatchRejectedError("An array of prompts is required.")
        self._check_size(len(rows))
        return [_PendingRow(index, item) for index, item in enumerate(rows, start=1)]

    def _prepare_csv(self, text: str) -> List[_PendingRow]:
        parsed = tokenize(text)
        if not parsed:
            raise BatchRejectedError("CSV file is empty or invalid.")

        header = HeaderMap(parsed[0])
        missing = missing_required_columns(header)
        if missing:
            raise BatchRejectedError(
                f"Missing required columns: {', '.join(missing)}. "
                f"Required columns are: title, content, tag. "
                f"Optional columns: {', '.join(OPTIONAL_COLUMNS)}"
            )

        data_rows = parsed[1:]
        if not data_rows:
            raise BatchRejectedError("CSV file has a header but no prompt rows.")
        self._check_size(len(data_rows))

        # Row 1 is the header, so data rows start at 2
        return [
            _PendingRow(index, row, header=header)
            for index, row in enumerate(data_rows, start=2)
        ]

    def _check_size(self, count: int) -> None:
        if count > self.max_rows:
            raise BatchRejectedError(
                f"Maximum {self.max_rows} prompts per batch (got {count})."
            )

    # =========================================================================
    # Batch processing
    # =========================================================================

    async def run_batch(
        self,
        rows: BatchInput,
        enrich_images: bool,
        actor_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchJob:
        """Create one prompt per row, optionally generating thumbnails.

        Raises BatchRejectedError before anything is persisted when the input
        as a whole is unusable. Row-level problems end up in the results.
        """
        pending = self._prepare(rows)
        if enrich_images and self.enricher is None:
            raise BatchRejectedError("Thumbnail generation is not configured.")

        job = BatchJob(batch_id=self.new_batch_id(), total=len(pending))
        progress = BatchProgress(total=job.total)

        logger.info(json.dumps({
            "event": "bulk_batch_started",
            "batch_id": job.batch_id,
            "actor_id": actor_id,
            "total": job.total,
            "enrich_images": enrich_images,
        }))

        for row in pending:
            entry = await self._process_row(row, job.batch_id, actor_id, enrich_images)

            progress.processed += 1
            if entry is not None:
                job.results.append(entry)
                if entry.error is None:
                    progress.success += 1
                else:
                    progress.failed += 1
            if on_progress:
                on_progress(progress.model_copy())

        summary = job.summary
        logger.info(json.dumps({
            "event": "bulk_batch_completed",
            "batch_id": job.batch_id,
            **summary.model_dump(),
        }))
        return job

    async def _process_row(
        self,
        row: _PendingRow,
        batch_id: str,
        actor_id: str,
        enrich_images: bool,
    ) -> Optional[ResultEntry]:
        try:
            prompt = row.normalize()
        except Exception as exc:
            return self._failed(
                row.row_number, row.title_hint, "", str(exc) or "Unknown error", batch_id
            )

        if prompt is None:
            logger.debug(f"Skipping blank row {row.row_number} in {batch_id}")
            return None

        record_id = ""
        try:
            record = build_prompt_record(prompt, actor_id, batch_id, self.clock.now())
            record_id = await self._run_sync(lambda: self.store.create(record))

            image_url = None
            if enrich_images:
                try:
                    image_url = await self._attach_thumbnail(prompt, record_id, batch_id)
                finally:
                    await self.sleep(self.inter_record_delay)

            logger.info(f"Created prompt {record_id} (row {row.row_number}): {prompt.title}")
            return ResultEntry(
                record_id=record_id,
                title=prompt.title,
                row=row.row_number,
                image_url=image_url,
            )
        except Exception as exc:
            return self._failed(
                row.row_number, prompt.title, record_id, str(exc) or "Unknown error", batch_id
            )

    async def _attach_thumbnail(
        self,
        prompt: BulkPromptInput,
        record_id: str,
        batch_id: str,
    ) -> Optional[str]:
        image_url = await self.enricher.enrich(prompt.content, record_id, batch_id)
        if not image_url:
            return None
        patch = {"imageUrl": image_url, "updatedAt": self.clock.now()}
        await self._run_sync(lambda: self.store.update(record_id, patch))
        return image_url

    def _failed(
        self,
        row_number: int,
        title: str,
        record_id: str,
        error: str,
        batch_id: str,
    ) -> ResultEntry:
        logger.warning(json.dumps({
            "event": "bulk_row_failed",
            "batch_id": batch_id,
            "row": row_number,
            "record_id": record_id or None,
            "title": title,
            "error": error,
        }))
        return ResultEntry(record_id=record_id, title=title, row=row_number, error=error)

    # =========================================================================
    # Single prompt thumbnails
    # =========================================================================

    async def regenerate_thumbnail(
        self,
        record_id: str,
        actor_id: str,
        is_admin: bool = False,
    ) -> ResultEntry:
        """Generate (or replace) the thumbnail of one existing prompt."""
        if self.enricher is None:
            raise ThumbnailGenerationFailedError("Thumbnail generation is not configured.")

        get_record = getattr(self.store, "get", None)
        if get_record is None:
            raise RecordNotFoundError("Prompt lookup is not supported by this store.")

        record = await self._run_sync(lambda: get_record(record_id))
        if record is None:
            raise RecordNotFoundError(f"Prompt {record_id} not found.")

        if record.get("authorId") != actor_id and not is_admin:
            raise PermissionDeniedError("You can only generate thumbnails for your own prompts.")

        content = record.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ThumbnailUnavailableError("Prompt has no content to generate a thumbnail from.")

        batch_id = f"single-{epoch_millis(self.clock.now())}"
        image_url = await self.enricher.enrich(content, record_id, batch_id)
        if not image_url:
            raise ThumbnailGenerationFailedError("Failed to generate thumbnail image.")

        patch = {"imageUrl": image_url, "updatedAt": self.clock.now()}
        await self._run_sync(lambda: self.store.update(record_id, patch))

        return ResultEntry(
            record_id=record_id,
            title=record.get("title") or "",
            image_url=image_url,
        )


def split_results(job: BatchJob) -> Tuple[List[ResultEntry], List[ResultEntry]]:
    """Successful and failed entries of a finished batch."""
    succeeded = [entry for entry in job.results if entry.error is None]
    failed = [entry for entry in job.results if entry.error is not None]
    return succeeded, failed
