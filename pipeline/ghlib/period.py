from datetime import datetime
from datetime import timedelta
from datetime import timezone

MONTH_NAMES = [
	"January", "February", "March", "April", "May", "June",
	"July", "August", "September", "October", "November", "December",
]
MAX_WEEK_SCAN_DAYS = 380


#============================================
class ParseError(ValueError):
	"""
	Raised when a month or week selector cannot be parsed.
	"""


#============================================
def split_two_ints(text: str, what: str) -> tuple[int, int]:
	"""
	Split "A-B" into two integers or raise ParseError.
	"""
	parts = (text or "").strip().split("-", 1)
	if len(parts) != 2:
		raise ParseError(f"Invalid {what} {text!r}: expected two fields separated by '-'")
	try:
		first = int(parts[0])
		second = int(parts[1])
	except ValueError as error:
		raise ParseError(f"Invalid {what} {text!r}: fields must be integers") from error
	return first, second


#============================================
def last_day_of_month(year: int, month: int) -> int:
	"""
	Return the last calendar day of a month ("day 0" of the next month).
	"""
	if month == 12:
		next_month = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
	else:
		next_month = datetime(year, month + 1, 1, tzinfo=timezone.utc)
	return (next_month - timedelta(days=1)).day


#============================================
def first_day_of_iso_week(year: int, week: int) -> datetime:
	"""
	Return Monday 00:00 UTC of an ISO week by scanning day by day.
	"""
	date = datetime(year, 1, 1, tzinfo=timezone.utc)
	while date.weekday() != 0:
		date -= timedelta(days=1)
	for _ in range(MAX_WEEK_SCAN_DAYS):
		iso_year, iso_week, _ = date.isocalendar()
		if (iso_year, iso_week) == (year, week):
			return date
		date += timedelta(days=1)
	raise ParseError(f"ISO week {week} does not exist in {year}")


#============================================
class Period:
	"""
	Reporting window with a membership test exclusive on both ends.
	"""

	def __init__(self, start: datetime, end: datetime, label: str = ""):
		if not start < end:
			raise ParseError(f"Period start {start.isoformat()} is not before end {end.isoformat()}")
		self._start = start
		self._end = end
		self._label = label or f"{start.isoformat()} to {end.isoformat()}"

	@property
	def start(self) -> datetime:
		return self._start

	@property
	def end(self) -> datetime:
		return self._end

	@property
	def label(self) -> str:
		return self._label

	#============================================
	@classmethod
	def from_month(cls, text: str) -> "Period":
		"""
		Build the period covering one calendar month from "YYYY-MM".
		"""
		year, month = split_two_ints(text, "month")
		if year < 1:
			raise ParseError(f"Invalid month {text!r}: year must be positive")
		if not 1 <= month <= 12:
			raise ParseError(f"Invalid month {text!r}: month must be 1-12")
		try:
			start = datetime(year, month, 1, tzinfo=timezone.utc)
			end = datetime(year, month, last_day_of_month(year, month), 23, 59, 59, tzinfo=timezone.utc)
		except ValueError as error:
			raise ParseError(f"Invalid month {text!r}: {error}") from error
		return cls(start, end, f"{MONTH_NAMES[month - 1]} {year}")

	#============================================
	@classmethod
	def from_iso_week(cls, text: str) -> "Period":
		"""
		Build the seven-day period of one ISO week from "YYYY-W".
		"""
		year, week = split_two_ints(text, "week")
		if year < 1:
			raise ParseError(f"Invalid week {text!r}: year out of range")
		if not 1 <= week <= 53:
			raise ParseError(f"Invalid week {text!r}: week must be 1-53")
		try:
			start = first_day_of_iso_week(year, week)
			end = start + timedelta(days=7)
		except OverflowError as error:
			raise ParseError(f"Invalid week {text!r}: date out of range") from error
		return cls(start, end, f"week {week} of {year}")

	#============================================
	def contains(self, value: datetime | None) -> bool:
		"""
		True when value lies strictly between start and end.
		"""
		if value is None:
			return False
		return self._start < value < self._end

	def __repr__(self) -> str:
		return f"Period({self._start.isoformat()}, {self._end.isoformat()})"
