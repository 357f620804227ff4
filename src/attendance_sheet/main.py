from __future__ import annotations

import logging
import sys
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
SRC_DIR = PACKAGE_DIR.parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from attendance_sheet.config.settings import settings
from attendance_sheet.ui.app import AttendanceSheetApp

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        filename=str(log_path),
        encoding="utf-8",
        filemode="a",
    )


def main() -> None:
    configure_logging(settings.log_path)
    logging.getLogger(__name__).info("Starting %s", settings.app_name)

    app = AttendanceSheetApp()
    app.run()


if __name__ == "__main__":
    main()
