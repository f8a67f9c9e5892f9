from datetime import datetime

import rich.console

CONSOLE = rich.console.Console(stderr=True, highlight=False)
_VERBOSITY = {"level": 0}


#============================================
def set_verbosity(level: int) -> None:
	"""
	Set the global verbosity level (0 warnings, 1 info, 2 debug).
	"""
	_VERBOSITY["level"] = max(0, int(level))


#============================================
def pick_style(message: str) -> str:
	"""
	Choose a console style from message content.
	"""
	lower = message.lower()
	if ("failed" in lower) or ("error" in lower):
		return "bold red"
	if ("rate limit" in lower) or ("skipping" in lower) or ("malformed" in lower):
		return "yellow"
	if ("wrote " in lower) or ("collected" in lower):
		return "green"
	return "cyan"


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line to stderr.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[gh_report {now_text}] {message}"
	CONSOLE.print(line, style=pick_style(message), markup=False)


#============================================
def warn(message: str) -> None:
	log_step(message)


#============================================
def info(message: str) -> None:
	if _VERBOSITY["level"] >= 1:
		log_step(message)


#============================================
def debug(message: str) -> None:
	if _VERBOSITY["level"] >= 2:
		log_step(message)
