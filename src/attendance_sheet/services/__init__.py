from .autosave import DEFAULT_AUTOSAVE_DELAY_MS, AutoSaveScheduler, ImmediateRunner, RowSaveResult
from .progress import ProgressService, StudentProgress, summarize_student_progress
from .sheet_controller import SheetController, SheetLoadError, SheetSession
from .sheet_store import SheetStore, StudentAlreadyExistsError, UnknownStudentError
from .status import PASSING_RULE_TEXT, StatusEvaluator

__all__ = [
	"AutoSaveScheduler",
	"DEFAULT_AUTOSAVE_DELAY_MS",
	"ImmediateRunner",
	"PASSING_RULE_TEXT",
	"ProgressService",
	"RowSaveResult",
	"SheetController",
	"SheetLoadError",
	"SheetSession",
	"SheetStore",
	"StatusEvaluator",
	"StudentAlreadyExistsError",
	"StudentProgress",
	"UnknownStudentError",
	"summarize_student_progress",
]
