from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path

from attendance_sheet.data import Database
from attendance_sheet.models import Student
from attendance_sheet.services import SheetStore

logger = logging.getLogger("import_roster")

REQUIRED_COLUMNS = ("student_id",)


def read_roster(csv_path: Path) -> list[Student]:
    """Read ``student_id,name,phone`` rows; name and phone may be blank."""

    with open(csv_path, newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        fieldnames = [name.strip().lower() for name in reader.fieldnames or []]
        missing = [column for column in REQUIRED_COLUMNS if column not in fieldnames]
        if missing:
            raise ValueError(f"Roster file is missing column(s): {', '.join(missing)}")

        students: list[Student] = []
        for raw in reader:
            row = {(key or "").strip().lower(): (value or "").strip() for key, value in raw.items()}
            if not row.get("student_id"):
                continue
            students.append(
                Student(
                    student_id=row["student_id"],
                    display_name=row.get("name", ""),
                    phone=row.get("phone", ""),
                )
            )
    return students


def import_roster(store: SheetStore, teacher_id: str, students: list[Student]) -> int:
    for student in students:
        store.save_student(student)
        store.assign_student(teacher_id, student.student_id)
    return len(students)


def main() -> None:
    parser = argparse.ArgumentParser(description="Register students and assign them to a teacher's sheet.")
    parser.add_argument("roster", type=Path, help="CSV file with student_id,name,phone columns")
    parser.add_argument("--teacher", required=True, help="Teacher ID the students are assigned to")
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="SQLite database path (default: the configured application database)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    database_path = args.database
    if database_path is None:
        from attendance_sheet.config.settings import settings

        database_path = settings.database_path

    store = SheetStore(Database(database_path))
    store.initialize()

    count = import_roster(store, args.teacher, read_roster(args.roster))
    logger.info("Imported %d student(s) for teacher %s into %s", count, args.teacher, database_path)


if __name__ == "__main__":
    main()
