"""Photo catalog CLI: manage the DuckDB photo store."""

import argparse
from pathlib import Path


def main() -> None:
    """CLI entry point for catalog management."""
    parser = argparse.ArgumentParser(description="Photo Space catalog")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database schema")

    # import-photos
    import_parser = subparsers.add_parser(
        "import-photos", help="Register photos from a JSON manifest"
    )
    import_parser.add_argument("manifest", type=Path, help="JSON list of {name, url, ...}")

    # list
    list_parser = subparsers.add_parser("list", help="List photos in DB")
    list_parser.add_argument("--limit", type=int, default=None, help="Max photos to list")

    # clean
    clean_parser = subparsers.add_parser(
        "clean", help="Delete the Rekognition collection and all rows"
    )
    clean_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    if args.command == "init-db":
        from photo_space_faces.db import get_connection

        conn = get_connection()
        conn.close()
        print("Database initialized successfully.")

    elif args.command == "import-photos":
        _cmd_import_photos(args)

    elif args.command == "list":
        from photo_space_faces.catalog.repository import list_photos
        from photo_space_faces.db import get_connection

        conn = get_connection()
        photos = list_photos(conn, limit=args.limit)
        conn.close()
        for photo in photos:
            size = f"{photo.width}x{photo.height}" if photo.width and photo.height else "?"
            print(f"{photo.name}  {size}  {photo.url}")

    elif args.command == "clean":
        _cmd_clean(args)


def _cmd_import_photos(args: argparse.Namespace) -> None:
    """Insert manifest photos, skipping names already in the catalog."""
    from photo_space_faces.catalog.manifest import load_manifest
    from photo_space_faces.catalog.repository import count_photos, insert_photos
    from photo_space_faces.db import get_connection

    photos = load_manifest(args.manifest)
    conn = get_connection()
    before = count_photos(conn)
    insert_photos(conn, photos)
    after = count_photos(conn)
    conn.close()
    print(f"Registered {after - before} new photos ({len(photos) - (after - before)} already known).")


def _cmd_clean(args: argparse.Namespace) -> None:
    """Delete the Rekognition collection and truncate faces, persons and photos."""
    from photo_space_faces.catalog.schema import truncate_all
    from photo_space_faces.config import REKOGNITION_COLLECTION_ID
    from photo_space_faces.db import get_connection
    from photo_space_faces.indexing.recognition import RekognitionClient

    if not args.yes:
        answer = input(
            f"Delete collection '{REKOGNITION_COLLECTION_ID}' and all catalog rows? [y/N] "
        )
        if answer.strip().lower() != "y":
            print("Aborted.")
            return

    print("Deleting Rekognition collection...")
    if RekognitionClient().delete_collection(REKOGNITION_COLLECTION_ID):
        print(f"  Collection '{REKOGNITION_COLLECTION_ID}': deleted")
    else:
        print(f"  Collection '{REKOGNITION_COLLECTION_ID}': not found (already clean)")

    conn = get_connection()
    truncate_all(conn)
    conn.close()
    print("All tables and the Rekognition collection cleaned.")
