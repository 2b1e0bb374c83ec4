"""Page orchestrators: load data in parallel, stage edits, save and report errors."""

from .admin import AdminDashboard
from .attendance import AttendanceSheet
from .base import Page
from .marks import MarkEditor, MarksBrowser, MarksEntrySheet

__all__ = [
	"AdminDashboard",
	"AttendanceSheet",
	"MarkEditor",
	"MarksBrowser",
	"MarksEntrySheet",
	"Page",
]
