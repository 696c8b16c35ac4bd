"""Clustering CLI: group indexed faces into persons."""

import argparse
import sys


def main() -> None:
    """CLI entry point for identity clustering."""
    parser = argparse.ArgumentParser(description="Photo Space identity clustering")
    parser.add_argument("--log-level", default=None, help="Log level (default: $LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run", help="Re-cluster all indexed faces (replaces existing persons)"
    )
    run_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Rekognition similarity threshold 0-100 (default: 80)",
    )
    run_parser.add_argument(
        "--max-results", type=int, default=None, help="Max matches per search (default: 100)"
    )
    run_parser.add_argument(
        "--collection", default=None, help="Rekognition collection (default: from .env)"
    )

    subparsers.add_parser("summary", help="Show current persons")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from photo_space_faces.config import LOG_LEVEL
    from photo_space_faces.log import setup_logging

    setup_logging(args.log_level or LOG_LEVEL)

    if args.command == "run":
        sys.exit(_cmd_run(args))
    elif args.command == "summary":
        _cmd_summary()


def _cmd_run(args: argparse.Namespace) -> int:
    """Rebuild persons from the similarity graph."""
    import logging

    from photo_space_faces.clustering.engine import ClusteringEngine
    from photo_space_faces.config import (
        MATCH_THRESHOLD,
        MAX_SEARCH_RESULTS,
        REKOGNITION_COLLECTION_ID,
    )
    from photo_space_faces.db import get_connection
    from photo_space_faces.indexing.recognition import (
        CollectionNotFoundError,
        RecognitionServiceError,
        RekognitionClient,
    )

    log = logging.getLogger("photo_space_faces.clustering")
    engine = ClusteringEngine(
        RekognitionClient(),
        collection_id=args.collection or REKOGNITION_COLLECTION_ID,
        threshold=args.threshold if args.threshold is not None else MATCH_THRESHOLD,
        max_results=args.max_results or MAX_SEARCH_RESULTS,
    )

    conn = get_connection()
    try:
        result = engine.run(conn)
    except (CollectionNotFoundError, RecognitionServiceError) as e:
        log.error("Clustering aborted: %s", e)
        return 1
    finally:
        conn.close()

    if result.faces == 0:
        return 1
    print("\nDone. You can re-run this anytime to re-cluster.")
    print(f"  Faces clustered: {result.faces}")
    print(f"  Persons: {result.persons}")
    if result.singletons:
        print(f"  Single-face persons: {result.singletons}")
    if result.searches_failed:
        print(f"  Failed searches: {result.searches_failed}")
    return 0


def _cmd_summary() -> None:
    """Print persons, largest first."""
    from photo_space_faces.clustering.person_repository import list_persons
    from photo_space_faces.db import get_connection

    conn = get_connection()
    persons = list_persons(conn)
    conn.close()

    print(f"Total persons: {len(persons)}")
    for person in persons:
        print(f"  [{person.id}] {person.name or '(unnamed)'}: {person.face_count} faces")

    singles = [p for p in persons if p.face_count == 1]
    if singles:
        print(
            f"\nNote: {len(singles)} person(s) with only 1 face"
            " - may be unique or false detections"
        )
