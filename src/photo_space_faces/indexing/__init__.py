"""Face indexing CLI: detect, fuse and persist faces for every catalog photo."""

import argparse
import sys


def main() -> None:
    """CLI entry point for face indexing."""
    parser = argparse.ArgumentParser(description="Photo Space face indexer")
    parser.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Index faces for unprocessed photos")
    run_parser.add_argument(
        "--concurrency", type=int, default=None, help="Photos processed at once (default: 3)"
    )
    run_parser.add_argument(
        "--limit", type=int, default=None, help="Max number of photos to visit (default: all)"
    )
    run_parser.add_argument(
        "--collection", default=None, help="Rekognition collection (default: from .env)"
    )

    subparsers.add_parser("status", help="Show face indexing status")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from photo_space_faces.config import LOG_LEVEL
    from photo_space_faces.log import setup_logging

    setup_logging(args.log_level or LOG_LEVEL)

    if args.command == "run":
        sys.exit(_cmd_run(args))
    elif args.command == "status":
        _cmd_status()


def _cmd_run(args: argparse.Namespace) -> int:
    """Index faces for every photo in the catalog."""
    import logging

    import httpx
    from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

    from photo_space_faces.catalog.repository import count_photos
    from photo_space_faces.config import CONCURRENCY, HTTP_TIMEOUT, REKOGNITION_COLLECTION_ID
    from photo_space_faces.db import get_connection
    from photo_space_faces.indexing.extractor import FaceExtractor
    from photo_space_faces.indexing.indexer import index_corpus
    from photo_space_faces.indexing.landmarks import MediaPipeLandmarkDetector
    from photo_space_faces.indexing.recognition import (
        CollectionNotFoundError,
        RecognitionServiceError,
        RekognitionClient,
    )

    log = logging.getLogger("photo_space_faces.indexing")
    collection_id = args.collection or REKOGNITION_COLLECTION_ID
    concurrency = args.concurrency or CONCURRENCY

    conn = get_connection()
    total = count_photos(conn)
    if total == 0:
        log.error("No photos in database. Run 'photo-catalog import-photos' first.")
        conn.close()
        return 1

    recognition = RekognitionClient()
    try:
        recognition.ensure_collection(collection_id)
    except RecognitionServiceError as e:
        log.error("Could not prepare collection '%s': %s", collection_id, e)
        conn.close()
        return 1

    detector = MediaPipeLandmarkDetector()
    log.info("MediaPipe face mesh loaded.")

    try:
        with (
            httpx.Client(timeout=HTTP_TIMEOUT, follow_redirects=True) as http_client,
            Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                TextColumn("{task.completed}/{task.total}"),
            ) as progress,
        ):
            task = progress.add_task(
                "Indexing faces", total=min(total, args.limit) if args.limit else total
            )
            extractor = FaceExtractor(recognition, detector, http_client, collection_id=collection_id)
            summary = index_corpus(
                conn,
                extractor,
                concurrency=concurrency,
                limit=args.limit,
                on_photo_done=lambda _result: progress.advance(task),
            )
    except CollectionNotFoundError as e:
        log.error("%s", e)
        return 1
    finally:
        detector.close()
        conn.close()

    print("\nDone.")
    print(f"  Photos visited: {summary.photos}")
    for status, count in sorted(summary.statuses.items(), key=lambda item: item[0].value):
        print(f"    {status.value}: {count}")
    print(f"  Faces indexed this run: {summary.faces_indexed} ({summary.faces_meshed} mesh-matched)")
    print(f"  Faces in database: {summary.total_faces}")
    print("Run 'face-cluster run' to group them by identity.")
    return 0


def _cmd_status() -> None:
    """Show face indexing status."""
    from photo_space_faces.config import DB_PATH
    from photo_space_faces.db import get_connection
    from photo_space_faces.indexing.face_repository import get_face_stats

    conn = get_connection()
    total, indexed, faces, meshed = get_face_stats(conn)
    conn.close()
    print(f"DB: {DB_PATH}")
    print(f"Photos with faces: {indexed}/{total}")
    print(f"Faces indexed: {faces}")
    print(f"Mesh-matched faces: {meshed}")
    if indexed > 0:
        print(f"Average faces per photo: {faces / indexed:.1f}")
