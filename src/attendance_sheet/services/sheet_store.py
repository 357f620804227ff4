from __future__ import annotations

import sqlite3

from attendance_sheet.data import Database
from attendance_sheet.models import (
    WEEK_NUMBERS,
    WEEKDAY_KEYS,
    BackingRecord,
    CertificateRequest,
    OVERALL_NUMERIC_FIELDS,
    Student,
)
from attendance_sheet.models.sheet import assessment_column, week_column


class StudentAlreadyExistsError(RuntimeError):
    """Raised when registering a student id that is already on file."""


class UnknownStudentError(KeyError):
    """Raised when an operation names a student that is not registered or not on the sheet."""


SHEET_VALUE_COLUMNS: tuple[str, ...] = (
    *(
        column
        for week_number in WEEK_NUMBERS
        for column in (
            *(week_column(week_number, day) for day in WEEKDAY_KEYS),
            assessment_column(week_number),
        )
    ),
    *OVERALL_NUMERIC_FIELDS,
    "letter_equivalent",
    "status",
    "notes",
)

SHEET_KEY_COLUMNS: tuple[str, ...] = ("student_id", "teacher_id", "month")


class SheetStore:
    """SQLite-backed student registry, sheet backing store and certificate issuer."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def initialize(self) -> None:
        self._database.initialize()

    # ------------------------------------------------------------------
    # Student registry
    # ------------------------------------------------------------------
    def add_student(self, student: Student) -> None:
        with self._database.connect() as connection:
            try:
                connection.execute(
                    "INSERT INTO students (student_id, display_name, phone) VALUES (?, ?, ?)",
                    (student.student_id.strip(), student.display_name.strip(), student.phone.strip()),
                )
            except sqlite3.IntegrityError as exc:
                raise StudentAlreadyExistsError(
                    f"Student {student.student_id!r} is already registered."
                ) from exc

    def save_student(self, student: Student) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT INTO students (student_id, display_name, phone)
                VALUES (?, ?, ?)
                ON CONFLICT(student_id) DO UPDATE
                   SET display_name = excluded.display_name,
                       phone = excluded.phone
                """,
                (student.student_id.strip(), student.display_name.strip(), student.phone.strip()),
            )

    def get_student(self, student_id: str) -> Student | None:
        with self._database.connect() as connection:
            row = connection.execute(
                "SELECT student_id, display_name, phone FROM students WHERE student_id = ?",
                (student_id,),
            ).fetchone()

        if not row:
            return None
        return Student(student_id=row["student_id"], display_name=row["display_name"], phone=row["phone"])

    def list_students(self) -> list[Student]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT student_id, display_name, phone
                  FROM students
              ORDER BY LOWER(COALESCE(NULLIF(display_name, ''), student_id)) ASC,
                       student_id ASC
                """
            ).fetchall()

        return [
            Student(student_id=row["student_id"], display_name=row["display_name"], phone=row["phone"])
            for row in rows
        ]

    def assign_student(self, teacher_id: str, student_id: str) -> None:
        with self._database.connect() as connection:
            exists = connection.execute(
                "SELECT 1 FROM students WHERE student_id = ?",
                (student_id,),
            ).fetchone()
            if not exists:
                raise UnknownStudentError(student_id)

            connection.execute(
                "INSERT OR IGNORE INTO student_teachers (student_id, teacher_id) VALUES (?, ?)",
                (student_id, teacher_id.strip()),
            )

    def unassign_student(self, teacher_id: str, student_id: str) -> int:
        """Remove an assignment together with that teacher's sheets for the student.

        Returns the number of sheet records removed.
        """
        with self._database.connect() as connection:
            connection.execute(
                "DELETE FROM student_teachers WHERE student_id = ? AND teacher_id = ?",
                (student_id, teacher_id),
            )
            cursor = connection.execute(
                "DELETE FROM teacher_attendance_sheets WHERE student_id = ? AND teacher_id = ?",
                (student_id, teacher_id),
            )
            return int(cursor.rowcount or 0)

    def list_assigned_students(self, teacher_id: str) -> list[Student]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT s.student_id, s.display_name, s.phone
                  FROM student_teachers AS st
            INNER JOIN students AS s ON s.student_id = st.student_id
                 WHERE st.teacher_id = ?
              ORDER BY st.id ASC
                """,
                (teacher_id,),
            ).fetchall()

        return [
            Student(student_id=row["student_id"], display_name=row["display_name"], phone=row["phone"])
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Sheet backing store
    # ------------------------------------------------------------------
    def fetch_sheet_records(self, teacher_id: str, month: str) -> list[BackingRecord]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT sh.*,
                       EXISTS(
                           SELECT 1 FROM student_certificates AS c
                            WHERE c.attendance_sheet_id = sh.id
                       ) AS certificate_issued
                  FROM teacher_attendance_sheets AS sh
                 WHERE sh.teacher_id = ?
                   AND sh.month = ?
              ORDER BY sh.id ASC
                """,
                (teacher_id, month),
            ).fetchall()

        return [BackingRecord.from_columns(row) for row in rows]

    def upsert_sheet_record(self, record: BackingRecord) -> int:
        columns = record.to_columns()
        values = [columns[name] for name in SHEET_VALUE_COLUMNS]

        with self._database.connect() as connection:
            if record.id is not None:
                assignments = ", ".join(f"{name} = ?" for name in SHEET_VALUE_COLUMNS)
                cursor = connection.execute(
                    f"""
                    UPDATE teacher_attendance_sheets
                       SET {assignments},
                           updated_at = datetime('now')
                     WHERE id = ?
                    """,
                    (*values, record.id),
                )
                if cursor.rowcount:
                    return int(record.id)

            insert_columns = SHEET_KEY_COLUMNS + SHEET_VALUE_COLUMNS
            placeholders = ", ".join(["?"] * len(insert_columns))
            conflict_updates = ", ".join(f"{name} = excluded.{name}" for name in SHEET_VALUE_COLUMNS)
            connection.execute(
                f"""
                INSERT INTO teacher_attendance_sheets ({", ".join(insert_columns)})
                VALUES ({placeholders})
                ON CONFLICT(teacher_id, student_id, month) DO UPDATE
                   SET {conflict_updates},
                       updated_at = datetime('now')
                """,
                (record.student_id, record.teacher_id, record.month, *values),
            )
            row = connection.execute(
                """
                SELECT id FROM teacher_attendance_sheets
                 WHERE teacher_id = ?
                   AND student_id = ?
                   AND month = ?
                """,
                (record.teacher_id, record.student_id, record.month),
            ).fetchone()
            return int(row["id"])

    def list_student_sheets(self, student_id: str) -> list[BackingRecord]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT sh.*,
                       EXISTS(
                           SELECT 1 FROM student_certificates AS c
                            WHERE c.attendance_sheet_id = sh.id
                       ) AS certificate_issued
                  FROM teacher_attendance_sheets AS sh
                 WHERE sh.student_id = ?
              ORDER BY sh.month DESC, sh.id DESC
                """,
                (student_id,),
            ).fetchall()

        return [BackingRecord.from_columns(row) for row in rows]

    # ------------------------------------------------------------------
    # Certificates
    # ------------------------------------------------------------------
    def issue_certificate(self, request: CertificateRequest) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT OR IGNORE INTO student_certificates (
                    student_id, teacher_id, attendance_sheet_id, issue_date, certificate_type
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    request.student_id,
                    request.teacher_id,
                    request.backing_record_id,
                    request.issue_date.isoformat(),
                    request.certificate_type,
                ),
            )

    def list_certificates(self, student_id: str) -> list[dict]:
        with self._database.connect() as connection:
            rows = connection.execute(
                """
                SELECT c.id,
                       c.student_id,
                       c.teacher_id,
                       c.attendance_sheet_id,
                       c.issue_date,
                       c.certificate_type,
                       sh.month
                  FROM student_certificates AS c
             LEFT JOIN teacher_attendance_sheets AS sh ON sh.id = c.attendance_sheet_id
                 WHERE c.student_id = ?
              ORDER BY c.issue_date DESC, c.id DESC
                """,
                (student_id,),
            ).fetchall()

        return [dict(row) for row in rows]
