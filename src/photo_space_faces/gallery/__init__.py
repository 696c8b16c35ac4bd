"""Gallery CLI: browse persons and faces, name persons."""

import argparse


def main() -> None:
    """CLI entry point for gallery queries."""
    parser = argparse.ArgumentParser(description="Photo Space gallery queries")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("persons", help="List persons with a representative face")

    faces_parser = subparsers.add_parser("faces", help="List faces in a photo")
    faces_parser.add_argument("--photo", required=True, help="Photo name")

    photos_parser = subparsers.add_parser(
        "photos", help="List photos (only those containing a person with --person)"
    )
    photos_parser.add_argument("--person", type=int, default=None, help="Person ID")

    name_parser = subparsers.add_parser("name", help="Set a person's display name")
    name_parser.add_argument("person_id", type=int, help="Person ID")
    name_parser.add_argument("name", help="Display name")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    from photo_space_faces.db import get_connection
    from photo_space_faces.gallery import query

    conn = get_connection()
    try:
        if args.command == "persons":
            for card in query.persons_with_representative_face(conn):
                person = card.person
                print(
                    f"  [{person.id}] {person.name or '(unnamed)'}: {person.face_count} faces"
                    f"  {card.thumbnail or ''}"
                )

        elif args.command == "faces":
            for face in query.faces_for_photo(conn, args.photo):
                box = face.box
                who = face.person_name or (f"person {face.person_id}" if face.person_id else "-")
                mesh = f"{len(face.landmarks)} pts" if face.landmarks else "no mesh"
                print(
                    f"  [{face.id}] ({box.x:.3f}, {box.y:.3f}, {box.w:.3f}, {box.h:.3f})"
                    f"  {mesh}  {who}"
                )

        elif args.command == "photos":
            if args.person is None:
                for photo in query.gallery_photos(conn):
                    print(f"{photo.name}  {photo.url}")
            else:
                for name in query.photos_for_person(conn, args.person):
                    print(name)

        elif args.command == "name":
            person = query.rename_person(conn, args.person_id, args.name)
            if person is None:
                print(f"Error: person {args.person_id} not found")
            else:
                print(f"Person {person.id} is now '{person.name}'.")
    finally:
        conn.close()
