"""
processor.py - Builds one MarketRecord per uploaded file.

Pipeline per file:
read rows -> detect format -> parse rows -> rank & validate -> totals -> record

Every failure is returned as an error record; nothing raised inside the
pipeline reaches the caller. Batches run on a thread pool and come back in
submission order.
"""

import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import BinaryIO, Callable, List, Optional, Sequence, Tuple, Union

from .constants import (
    ERROR_CANCELLED,
    ERROR_NO_DATA_ROWS,
    ERROR_NO_VALID_ROWS,
    ERROR_UNEXPECTED,
    ERROR_UNKNOWN_FORMAT,
)
from .formats import detect_format, parse_rows
from .io import read_spreadsheet
from .models import FileFormat, MarketRecord, RecordStatus
from .normalize import derive_market_name
from .transform import compute_market_totals, rank_and_validate, resolve_status

logger = logging.getLogger(__name__)

FileData = Union[bytes, bytearray, BinaryIO]
IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


class MarketIdGenerator:
    """
    Produces ids of the form "market-<epoch ms>-<counter>".

    The counter is shared by every call on the same instance and is safe to
    use from worker threads.
    """

    def __init__(self, prefix: str = "market", start: int = 1,
                 time_source: Callable[[], float] = time.time):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()
        self._time_source = time_source

    def __call__(self) -> str:
        with self._lock:
            number = next(self._counter)
        millis = int(self._time_source() * 1000)
        return f"{self.prefix}-{millis}-{number}"


_default_id_generator = MarketIdGenerator()


def create_error_record(
    record_id: str,
    file_name: str,
    market_name: str,
    message: str,
    file_format: FileFormat = FileFormat.UNKNOWN,
    processed_at: Optional[datetime] = None
) -> MarketRecord:
    """Builds an unusable record carrying a single error message."""
    return MarketRecord(
        id=record_id,
        source_file_name=file_name,
        derived_market_name=market_name,
        detected_format=file_format,
        status=RecordStatus.ERROR,
        errors=(message or ERROR_UNEXPECTED,),
        processed_at=processed_at or datetime.now(),
    )


def process_file(
    file_name: str,
    data: FileData,
    id_factory: Optional[IdFactory] = None,
    clock: Optional[Clock] = None
) -> MarketRecord:
    """
    Processes one uploaded file into a MarketRecord.

    Args:
        file_name: Original file name (used for the extension and market name)
        data: File bytes or a binary file-like object
        id_factory: Callable returning a unique id (default MarketIdGenerator)
        clock: Callable returning the processing timestamp

    Returns:
        MarketRecord with status ready, warning or error
    """
    record_id = (id_factory or _default_id_generator)()
    now = (clock or datetime.now)()
    market_name = derive_market_name(file_name)

    def fail(message: str, file_format: FileFormat = FileFormat.UNKNOWN) -> MarketRecord:
        logger.info("[process] id=%s file=%s status=error reason=%s", record_id, file_name, message)
        return create_error_record(record_id, file_name, market_name, message, file_format, now)

    try:
        rows = read_spreadsheet(data, file_name)
        if len(rows) < 2:
            return fail(ERROR_NO_DATA_ROWS)

        file_format = detect_format(rows[0])
        logger.info("[process] id=%s file=%s format=%s", record_id, file_name, file_format.value)
        if file_format is FileFormat.UNKNOWN:
            return fail(ERROR_UNKNOWN_FORMAT)

        brokerages, discarded = parse_rows(file_format, rows[1:])
        if not brokerages:
            return fail(ERROR_NO_VALID_ROWS, file_format)

        ranking = rank_and_validate(brokerages)
        total_dollar, total_units = compute_market_totals(ranking.brokerages)
        errors = ()
        status = resolve_status(file_format, ranking.brokerages, ranking.warnings, errors)

        logger.info(
            "[process] id=%s file=%s status=%s brokerages=%d discarded=%d warnings=%d",
            record_id, file_name, status.value, len(ranking.brokerages),
            discarded, len(ranking.warnings),
        )

        return MarketRecord(
            id=record_id,
            source_file_name=file_name,
            derived_market_name=market_name,
            detected_format=file_format,
            brokerages=ranking.brokerages,
            home_brand_record=ranking.home_brand_record,
            is_home_brand_first_by_dollar=ranking.is_home_brand_first_by_dollar,
            is_home_brand_first_by_units=ranking.is_home_brand_first_by_units,
            available_metric_views=ranking.available_metric_views,
            total_market_dollar=total_dollar,
            total_market_units=total_units,
            status=status,
            warnings=ranking.warnings,
            errors=errors,
            processed_at=now,
        )
    except Exception as e:
        logger.exception("[process] id=%s file=%s failed", record_id, file_name)
        return fail(str(e) or ERROR_UNEXPECTED)


def process_files(
    files: Sequence[Tuple[str, FileData]],
    max_workers: Optional[int] = None,
    id_factory: Optional[IdFactory] = None,
    cancel_event: Optional[threading.Event] = None
) -> List[MarketRecord]:
    """
    Processes a batch of files concurrently.

    Each file is independent: a failure in one never affects the others.
    When cancel_event is set, files whose parse has not started yet come
    back as error records instead of being parsed.

    Args:
        files: List of (file_name, data) pairs
        max_workers: Thread pool size (default: one per file, at most 8)
        id_factory: Shared id factory for the whole batch
        cancel_event: Optional event checked before each file starts

    Returns:
        One MarketRecord per input, in submission order
    """
    if not files:
        return []

    id_factory = id_factory or _default_id_generator
    workers = max_workers or min(len(files), 8)

    def run(item: Tuple[str, FileData]) -> MarketRecord:
        file_name, data = item
        if cancel_event is not None and cancel_event.is_set():
            return create_error_record(
                id_factory(), file_name, derive_market_name(file_name), ERROR_CANCELLED
            )
        return process_file(file_name, data, id_factory=id_factory)

    logger.info("[batch] files=%d workers=%d", len(files), workers)

    results = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, item) for item in files]
        for (file_name, _), future in zip(files, futures):
            try:
                results.append(future.result())
            except Exception as e:
                logger.exception("[batch] file=%s worker failed", file_name)
                results.append(create_error_record(
                    id_factory(), file_name, derive_market_name(file_name), str(e) or ERROR_UNEXPECTED
                ))

    if cancel_event is not None and cancel_event.is_set():
        logger.info("[batch] cancel requested files=%d", len(results))

    return results
