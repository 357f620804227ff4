from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from attendance_sheet.models import BackingRecord, CertificateRequest, SheetStatus, StudentSheetRow
from attendance_sheet.services.collaborators import CertificateIssuer

logger = logging.getLogger(__name__)

PASSING_RULE_TEXT = (
    "Passing rule: above 70% = Pass, the student moves to the next level and can see their certificate. "
    "Below 70% = Repeat, the student stays on the same level for the next course."
)


class StatusEvaluator:
    """Owns the pass/repeat toggle and the certificate side effect.

    The toggle never looks at grades or attendance; the passing rule above is
    guidance for the teacher only.
    """

    def __init__(self, issuer: CertificateIssuer, *, today: Callable[[], date] = date.today) -> None:
        self._issuer = issuer
        self._today = today

    @staticmethod
    def cycle(row: StudentSheetRow) -> SheetStatus:
        return row.cycle_status()

    @staticmethod
    def should_issue(record: BackingRecord) -> bool:
        return record.status is SheetStatus.PASSED and not record.certificate_issued

    def after_save(self, record: BackingRecord, backing_record_id: int) -> bool:
        """Issue a certificate for a freshly persisted Passed record.

        ``record`` is the snapshot that was just written, so a row toggled away
        from Passed before its batch ran issues nothing. Returns whether the
        row now has a certificate.
        """
        if not self.should_issue(record):
            return record.certificate_issued

        request = CertificateRequest(
            student_id=record.student_id,
            teacher_id=record.teacher_id,
            backing_record_id=backing_record_id,
            issue_date=self._today(),
        )
        try:
            self._issuer.issue_certificate(request)
        except Exception:
            logger.exception(
                "Certificate issuance failed for student %s (sheet %s)",
                record.student_id,
                backing_record_id,
            )
            return False

        logger.info("Issued certificate for student %s (sheet %s)", record.student_id, backing_record_id)
        return True
