import time
from datetime import datetime
from datetime import timezone

from github import Auth
from github import Github
from github import RateLimitExceededException

RESET_GRACE_SECONDS = 5
PER_PAGE = 100


#============================================
class RateLimitError(RuntimeError):
	"""
	Raised when the rate-limit reset time cannot be determined.
	"""


#============================================
def to_utc_iso(value) -> str:
	"""
	Convert datetime-like values to ISO-8601 UTC strings.
	"""
	if value is None:
		return ""
	if isinstance(value, str):
		return value
	if isinstance(value, datetime):
		if value.tzinfo is None:
			value = value.replace(tzinfo=timezone.utc)
		return value.astimezone(timezone.utc).isoformat()
	return str(value)


#============================================
def user_to_dict(user_obj) -> dict | None:
	"""
	Normalize a PyGithub user object to the REST user shape.
	"""
	if user_obj is None:
		return None
	if isinstance(user_obj, dict):
		return dict(user_obj)
	return {
		"login": getattr(user_obj, "login", "") or "",
		"html_url": getattr(user_obj, "html_url", "") or "",
	}


#============================================
def pull_to_dict(pr_obj) -> dict:
	"""
	Normalize a PyGithub pull request to the REST pull shape.
	"""
	merged_at = getattr(pr_obj, "merged_at", None)
	return {
		"number": pr_obj.number,
		"state": getattr(pr_obj, "state", "") or "",
		"title": getattr(pr_obj, "title", "") or "",
		"html_url": getattr(pr_obj, "html_url", "") or "",
		"user": user_to_dict(getattr(pr_obj, "user", None)),
		"created_at": to_utc_iso(getattr(pr_obj, "created_at", None)),
		"updated_at": to_utc_iso(getattr(pr_obj, "updated_at", None)),
		"closed_at": to_utc_iso(getattr(pr_obj, "closed_at", None)),
		"merged_at": to_utc_iso(merged_at),
		"merged": merged_at is not None,
		# list rows carry no merger; GitHubClient.get_merged_by fills it in
		"merged_by": None,
	}


#============================================
def is_pull_request(issue_obj) -> bool:
	"""
	Issue listing rows that are really pull requests carry a pull_request link.
	"""
	return getattr(issue_obj, "pull_request", None) is not None


#============================================
def issue_to_dict(issue_obj) -> dict:
	"""
	Normalize a PyGithub issue to the REST issue shape.
	"""
	return {
		"number": issue_obj.number,
		"state": getattr(issue_obj, "state", "") or "",
		"title": getattr(issue_obj, "title", "") or "",
		"html_url": getattr(issue_obj, "html_url", "") or "",
		"user": user_to_dict(getattr(issue_obj, "user", None)),
		"created_at": to_utc_iso(getattr(issue_obj, "created_at", None)),
		"updated_at": to_utc_iso(getattr(issue_obj, "updated_at", None)),
		"closed_at": to_utc_iso(getattr(issue_obj, "closed_at", None)),
	}


#============================================
def comment_to_dict(comment_obj) -> dict:
	return {
		"created_at": to_utc_iso(getattr(comment_obj, "created_at", None)),
		"user": user_to_dict(getattr(comment_obj, "user", None)),
	}


#============================================
def review_to_dict(review_obj) -> dict:
	return {
		"submitted_at": to_utc_iso(getattr(review_obj, "submitted_at", None)),
		"user": user_to_dict(getattr(review_obj, "user", None)),
	}


#============================================
class GitHubClient:
	"""
	Thin PyGithub wrapper with page-by-page listing and rate-limit backoff.
	"""

	def __init__(self, token: str, log_fn=None, info_fn=None):
		self.log_fn = log_fn
		self.info_fn = info_fn
		self._api_call_count = 0
		self._api_calls_by_context: dict[str, int] = {}
		self._rate_wait_count = 0
		if token:
			self.client = Github(auth=Auth.Token(token), per_page=PER_PAGE, retry=None)
		else:
			self.client = Github(per_page=PER_PAGE, retry=None)

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def log_info(self, message: str) -> None:
		"""
		Emit one verbose log line when an info logger is configured.
		"""
		if self.info_fn is not None:
			self.info_fn(message)

	#============================================
	def record_api_call(self, context: str) -> None:
		"""
		Track one outbound GitHub API call.
		"""
		self._api_call_count += 1
		if context not in self._api_calls_by_context:
			self._api_calls_by_context[context] = 0
		self._api_calls_by_context[context] += 1

	#============================================
	def api_usage_snapshot(self) -> dict:
		"""
		Return API counters for reporting.
		"""
		return {
			"api_call_count": self._api_call_count,
			"api_calls_by_context": dict(self._api_calls_by_context),
			"rate_wait_count": self._rate_wait_count,
		}

	#============================================
	def parse_rate_limit_reset(self, reset_value) -> datetime:
		"""
		Normalize PyGithub reset values to timezone-aware UTC datetime.
		"""
		if isinstance(reset_value, datetime):
			if reset_value.tzinfo is None:
				return reset_value.replace(tzinfo=timezone.utc)
			return reset_value.astimezone(timezone.utc)
		if isinstance(reset_value, (int, float)) and reset_value > 0:
			return datetime.fromtimestamp(float(reset_value), tz=timezone.utc)
		if isinstance(reset_value, str) and reset_value:
			return datetime.fromisoformat(reset_value.replace("Z", "+00:00"))
		raise RateLimitError(f"Unsupported rate-limit reset value: {reset_value!r}")

	#============================================
	def rate_limit_snapshot(self) -> tuple[int, int, datetime]:
		"""
		Read remaining quota, limit and reset time from the last response.
		"""
		remaining, limit = self.client.rate_limiting
		reset_time = self.parse_rate_limit_reset(self.client.rate_limiting_resettime)
		return int(remaining), int(limit), reset_time

	#============================================
	def sleep_until_reset(self, context: str) -> None:
		"""
		Block until the rate-limit window resets.
		"""
		_, limit, reset_time = self.rate_limit_snapshot()
		sleep_seconds = (reset_time - datetime.now(timezone.utc)).total_seconds()
		sleep_seconds = max(0.0, sleep_seconds) + RESET_GRACE_SECONDS
		self._rate_wait_count += 1
		self.log(
			f"Rate limit exhausted ({context}); limit {limit} resets at "
			+ f"{reset_time.isoformat()}; sleeping {int(sleep_seconds)}s."
		)
		time.sleep(sleep_seconds)

	#============================================
	def wait_for_rate_limit(self, context: str) -> None:
		"""
		Sleep until reset when no requests remain in the current window.
		"""
		remaining, limit = self.client.rate_limiting
		self.log_info(f"Rate limit check ({context}): remaining={remaining}/{limit}")
		if remaining > 0:
			return
		self.sleep_until_reset(context)

	#============================================
	def call_with_backoff(self, context: str, call_fn):
		"""
		Run one API call, waiting out rate-limit rejections and retrying.
		"""
		while True:
			try:
				self.record_api_call(context)
				return call_fn()
			except RateLimitExceededException:
				self.sleep_until_reset(context)

	#============================================
	def iter_pages(self, context: str, paginated):
		"""
		Yield elements of a PaginatedList one page at a time.
		"""
		page = 0
		while True:
			elements = self.call_with_backoff(
				f"{context} page {page + 1}",
				lambda: paginated.get_page(page),
			)
			if not elements:
				return
			yield from elements
			self.wait_for_rate_limit(context)
			page += 1

	#============================================
	def get_repo(self, full_name: str):
		"""
		Get one repository object by full name.
		"""
		return self.call_with_backoff(
			f"GET /repos/{full_name}",
			lambda: self.client.get_repo(full_name),
		)

	#============================================
	def list_pulls(self, repo_obj):
		"""
		Iterate all pull requests, most recently updated first.
		"""
		paginated = repo_obj.get_pulls(state="all", sort="updated", direction="desc")
		return self.iter_pages(f"GET /repos/{repo_obj.full_name}/pulls", paginated)

	#============================================
	def list_issues(self, repo_obj, since: datetime | None = None):
		"""
		Iterate issues (and PR rows) updated since the cutoff.
		"""
		if since is None:
			paginated = repo_obj.get_issues(state="all", sort="updated", direction="desc")
		else:
			paginated = repo_obj.get_issues(state="all", sort="updated", direction="desc", since=since)
		return self.iter_pages(f"GET /repos/{repo_obj.full_name}/issues", paginated)

	#============================================
	def list_review_comments(self, pr_obj) -> list[dict]:
		return [
			comment_to_dict(comment_obj)
			for comment_obj in self.iter_pages(
				f"GET pulls/{pr_obj.number}/comments",
				pr_obj.get_review_comments(),
			)
		]

	#============================================
	def list_reviews(self, pr_obj) -> list[dict]:
		return [
			review_to_dict(review_obj)
			for review_obj in self.iter_pages(
				f"GET pulls/{pr_obj.number}/reviews",
				pr_obj.get_reviews(),
			)
		]

	#============================================
	def list_issue_comments(self, issue_obj) -> list[dict]:
		return [
			comment_to_dict(comment_obj)
			for comment_obj in self.iter_pages(
				f"GET issues/{issue_obj.number}/comments",
				issue_obj.get_comments(),
			)
		]

	#============================================
	def get_merged_by(self, pr_obj) -> dict | None:
		"""
		Load the merger of one pull; reading merged_by fetches the full pull.
		"""
		return self.call_with_backoff(
			f"GET pulls/{pr_obj.number}",
			lambda: user_to_dict(pr_obj.merged_by),
		)
