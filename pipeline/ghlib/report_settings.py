import os

import yaml

REPORT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
MAX_VERBOSITY = 2


#============================================
def settings_candidates(path_text: str) -> list[str]:
	"""
	Places a settings file is looked for: as given, then beside the checkout.
	"""
	if os.path.isabs(path_text):
		return [path_text]
	return [
		os.path.abspath(path_text),
		os.path.abspath(os.path.join(REPORT_ROOT, path_text)),
	]


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load the YAML settings mapping and the path it came from.

	A missing file yields empty settings and the last path tried.
	"""
	candidates = settings_candidates(path_text)
	for candidate in candidates:
		if os.path.isfile(candidate):
			break
	else:
		return {}, candidates[-1]
	with open(candidate, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	if data is None:
		return {}, candidate
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {candidate}")
	return data, candidate


#============================================
def lookup(settings: dict, dotted_key: str):
	"""
	Value under "section.key", None when any level is absent.
	"""
	node = settings
	for key in dotted_key.split("."):
		if not isinstance(node, dict):
			return None
		node = node.get(key)
	return node


#============================================
def get_setting_str(settings: dict, dotted_key: str) -> str:
	value = lookup(settings, dotted_key)
	if value is None:
		return ""
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, dotted_key: str, default_value: int) -> int:
	value = lookup(settings, dotted_key)
	if value is None:
		return default_value
	if isinstance(value, bool):
		raise RuntimeError(f"Setting {dotted_key} must be an integer, got {value!r}")
	try:
		return int(value)
	except (TypeError, ValueError) as error:
		raise RuntimeError(f"Setting {dotted_key} must be an integer, got {value!r}") from error


#============================================
def get_setting_list(settings: dict, dotted_key: str) -> list[str]:
	"""
	Read a list of strings; a single string becomes a one-item list.
	"""
	value = lookup(settings, dotted_key)
	if value is None:
		return []
	if isinstance(value, str):
		value = [value]
	if not isinstance(value, list):
		raise RuntimeError(f"Setting {dotted_key} must be a list, got {value!r}")
	return [str(entry).strip() for entry in value if str(entry).strip()]


#============================================
def resolve_token(cli_token: str, settings: dict) -> str:
	"""
	Command-line token first, then github.token from settings.
	"""
	token = (cli_token or "").strip()
	if token:
		return token
	return get_setting_str(settings, "github.token")


#============================================
def resolve_repos(cli_repos: list[str], settings: dict) -> list[str]:
	"""
	Command-line repositories first, then github.repos from settings.
	"""
	if cli_repos:
		return list(cli_repos)
	return get_setting_list(settings, "github.repos")


#============================================
def resolve_verbosity(cli_verbosity: int | None, settings: dict) -> int:
	if cli_verbosity is not None:
		verbosity = cli_verbosity
	else:
		verbosity = get_setting_int(settings, "report.verbosity", 0)
	# levels above debug behave as debug
	return max(0, min(verbosity, MAX_VERBOSITY))
