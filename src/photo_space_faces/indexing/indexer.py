"""Corpus indexer: run the face extractor over every catalog photo."""

import logging
from collections import Counter
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

import duckdb

from photo_space_faces.catalog.repository import list_photos
from photo_space_faces.config import CONCURRENCY
from photo_space_faces.indexing.extractor import ExtractionResult, ExtractionStatus, FaceExtractor
from photo_space_faces.indexing.recognition import CollectionNotFoundError
from photo_space_faces.log import RunLogger, new_run_id
from photo_space_faces.models import Photo

logger = logging.getLogger(__name__)


@dataclass
class IndexSummary:
    """Outcome counts for one indexing run."""

    run_id: str
    photos: int
    statuses: Counter
    faces_indexed: int
    faces_meshed: int
    total_faces: int

    @property
    def failed(self) -> int:
        return self.statuses[ExtractionStatus.FAILED]


def index_corpus(
    conn: duckdb.DuckDBPyConnection,
    extractor: FaceExtractor,
    concurrency: int = CONCURRENCY,
    limit: int | None = None,
    on_photo_done: Callable[[ExtractionResult], None] | None = None,
) -> IndexSummary:
    """Extract faces for all photos in name order, ``concurrency`` at a time.

    Each batch runs to completion, successes and failures alike, before the
    next one starts. A per-photo exception is logged and counted as FAILED;
    a missing recognition collection aborts the run once its batch is done.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    log = RunLogger(logger, new_run_id())
    photos = list_photos(conn, limit=limit)
    log.info("Processing %d photos (concurrency=%d)", len(photos), concurrency)

    statuses: Counter = Counter()
    faces_indexed = 0
    faces_meshed = 0

    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="extract") as pool:
        for start in range(0, len(photos), concurrency):
            batch = photos[start : start + concurrency]
            futures = [
                pool.submit(_extract_one, conn, extractor, photo, start + j + 1, len(photos), log)
                for j, photo in enumerate(batch)
            ]
            wait(futures)

            fatal: CollectionNotFoundError | None = None
            for future in futures:
                try:
                    result = future.result()
                except CollectionNotFoundError as e:
                    fatal = e
                    continue
                statuses[result.status] += 1
                faces_indexed += result.faces
                faces_meshed += result.meshed
                if on_photo_done is not None:
                    on_photo_done(result)
            if fatal is not None:
                log.error("Aborting: %s", fatal)
                raise fatal

            log.info("batch done (%d/%d)", min(start + concurrency, len(photos)), len(photos))

    total_row = conn.execute("SELECT COUNT(*) FROM faces").fetchone()
    summary = IndexSummary(
        run_id=log.run_id,
        photos=len(photos),
        statuses=statuses,
        faces_indexed=faces_indexed,
        faces_meshed=faces_meshed,
        total_faces=total_row[0] if total_row else 0,
    )
    log.info(
        "Done. %d new face(s) this run, %d faces indexed in total.",
        summary.faces_indexed,
        summary.total_faces,
    )
    if summary.failed:
        log.warning("%d photo(s) failed; re-run to retry them.", summary.failed)
    return summary


def _extract_one(
    conn: duckdb.DuckDBPyConnection,
    extractor: FaceExtractor,
    photo: Photo,
    idx: int,
    total: int,
    log: RunLogger,
) -> ExtractionResult:
    log.info("[%d/%d] %s", idx, total, photo.name)
    # DuckDB connections are not shared across threads; each worker gets a cursor
    cursor = conn.cursor()
    try:
        return extractor.extract(cursor, photo.name, photo.url, log=log)
    except CollectionNotFoundError:
        raise
    except Exception:
        log.exception("Error processing %s", photo.name)
        return ExtractionResult(photo.name, ExtractionStatus.FAILED)
    finally:
        cursor.close()
