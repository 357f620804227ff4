from __future__ import annotations

from typing import Protocol

from attendance_sheet.models import BackingRecord, CertificateRequest, Student


class StudentRegistry(Protocol):
    def list_assigned_students(self, teacher_id: str) -> list[Student]:
        ...


class SheetBackingStore(Protocol):
    def fetch_sheet_records(self, teacher_id: str, month: str) -> list[BackingRecord]:
        ...

    def upsert_sheet_record(self, record: BackingRecord) -> int:
        """Persist ``record`` and return the id of the stored row."""
        ...


class CertificateIssuer(Protocol):
    def issue_certificate(self, request: CertificateRequest) -> None:
        ...
