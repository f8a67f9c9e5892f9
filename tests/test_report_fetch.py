import os
import sys
from datetime import datetime
from datetime import timezone
from types import SimpleNamespace

import requests
from github import GithubException
from github import RateLimitExceededException


REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PIPELINE_DIR = os.path.join(REPO_ROOT, "pipeline")
if PIPELINE_DIR not in sys.path:
	sys.path.insert(0, PIPELINE_DIR)

from ghlib import github_client
from ghlib import report_fetch
from ghlib.users import UserRegistry


#============================================
def utc(*parts) -> datetime:
	return datetime(*parts, tzinfo=timezone.utc)


#============================================
class FakePaginatedList:
	"""Fake PaginatedList serving one page."""
	def __init__(self, elements: list):
		self.elements = elements

	def get_page(self, page: int) -> list:
		if page == 0:
			return list(self.elements)
		return []


#============================================
def fake_user(login: str) -> SimpleNamespace:
	return SimpleNamespace(login=login, html_url=f"https://github.com/{login}")


#============================================
def fake_pull(number: int, created_at, updated_at, comments=(), reviews=()) -> SimpleNamespace:
	return SimpleNamespace(
		number=number,
		state="open",
		title=f"PR {number}",
		html_url=f"https://github.com/acme/widget/pull/{number}",
		user=fake_user("alice"),
		created_at=created_at,
		updated_at=updated_at,
		closed_at=None,
		merged_at=None,
		get_review_comments=lambda: FakePaginatedList(list(comments)),
		get_reviews=lambda: FakePaginatedList(list(reviews)),
	)


#============================================
def fake_issue(number: int, kind: str = "issues", comments=()) -> SimpleNamespace:
	return SimpleNamespace(
		number=number,
		state="open",
		title=f"Issue {number}",
		html_url=f"https://github.com/acme/widget/{kind}/{number}",
		pull_request=SimpleNamespace() if kind == "pull" else None,
		user=fake_user("bob"),
		created_at=utc(2018, 1, 3),
		updated_at=utc(2018, 1, 4),
		closed_at=None,
		get_comments=lambda: FakePaginatedList(list(comments)),
	)


#============================================
class FakeRepo:
	"""Fake PyGithub repository with pulls and issues."""
	def __init__(self, pulls: list, issues: list):
		self.full_name = "acme/widget"
		self.pulls = pulls
		self.issues = issues
		self.issue_kwargs = {}

	def get_pulls(self, **kwargs):
		return FakePaginatedList(self.pulls)

	def get_issues(self, **kwargs):
		self.issue_kwargs = kwargs
		return FakePaginatedList(self.issues)


#============================================
def make_stub_client(repos: dict) -> github_client.GitHubClient:
	"""
	Build GitHubClient around a fake PyGithub client serving fixed repos.
	"""
	def get_repo(full_name: str):
		if full_name not in repos:
			raise GithubException(404, {"message": "Not Found"}, {})
		return repos[full_name]

	client = github_client.GitHubClient.__new__(github_client.GitHubClient)
	client.log_fn = None
	client.info_fn = None
	client._api_call_count = 0
	client._api_calls_by_context = {}
	client._rate_wait_count = 0
	client.client = SimpleNamespace(
		rate_limiting=(100, 5000),
		rate_limiting_resettime=0,
		get_repo=get_repo,
	)
	return client


#============================================
def test_split_owner_repo() -> None:
	assert report_fetch.split_owner_repo("acme/widget") == ("acme", "widget")
	assert report_fetch.split_owner_repo("acme") is None
	assert report_fetch.split_owner_repo("acme/") is None
	assert report_fetch.split_owner_repo("a/b/c") is None


#============================================
def test_fetch_repo_builds_items_and_stops_at_cutoff() -> None:
	"""
	PR listing ends at the first PR older than the cutoff; PR rows of the
	issue listing are skipped.
	"""
	review_comment = SimpleNamespace(created_at=utc(2018, 1, 6), user=fake_user("carol"))
	review = SimpleNamespace(submitted_at=utc(2018, 1, 7), user=fake_user("dave"))
	pulls = [
		fake_pull(2, utc(2018, 1, 5), utc(2018, 1, 8), comments=[review_comment], reviews=[review]),
		fake_pull(1, utc(2017, 10, 1), utc(2017, 11, 1)),
		fake_pull(0, utc(2018, 1, 2), utc(2018, 1, 2)),
	]
	issue_comment = SimpleNamespace(created_at=utc(2018, 1, 5), user=fake_user("erin"))
	issues = [fake_issue(5, comments=[issue_comment]), fake_issue(2, kind="pull")]
	repo = FakeRepo(pulls, issues)
	registry = UserRegistry()
	fetcher = report_fetch.ReportFetcher(make_stub_client({"acme/widget": repo}), registry)
	since = utc(2018, 1, 1)
	prs, found_issues = fetcher.fetch_repo("acme/widget", since=since)
	assert [pr.id for pr in prs] == ["acme/widget#2"]
	assert sorted(comment.user.login for comment in prs[0].comments) == ["carol", "dave"]
	assert [issue.id for issue in found_issues] == ["acme/widget#5"]
	assert found_issues[0].comments[0].user is registry.get("erin")
	assert repo.issue_kwargs["since"] == since
	assert "erin" in registry


#============================================
def test_fetch_repo_limit_caps_items() -> None:
	pulls = [fake_pull(number, utc(2018, 1, 5), utc(2018, 1, 8)) for number in (9, 8, 7)]
	issues = [fake_issue(number) for number in (6, 5, 4)]
	repo = FakeRepo(pulls, issues)
	fetcher = report_fetch.ReportFetcher(make_stub_client({"acme/widget": repo}), UserRegistry())
	prs, found_issues = fetcher.fetch_repo("acme/widget", limit=2)
	assert [pr.number for pr in prs] == [9, 8]
	assert [issue.number for issue in found_issues] == [6, 5]
	assert "since" not in repo.issue_kwargs


#============================================
def test_fetch_all_skips_malformed_and_failed_repos() -> None:
	"""
	One broken repository does not abort the others.
	"""
	repo = FakeRepo([fake_pull(1, utc(2018, 1, 5), utc(2018, 1, 8))], [])
	fetcher = report_fetch.ReportFetcher(make_stub_client({"acme/widget": repo}), UserRegistry())
	fetched, items = fetcher.fetch_all(["broken", "acme/missing", "acme/widget"])
	assert fetched == ["acme/widget"]
	assert [item.id for item in items] == ["acme/widget#1"]


#============================================
def test_before_cutoff_uses_closed_time() -> None:
	pull = github_client.pull_to_dict(fake_pull(1, utc(2017, 1, 1), utc(2017, 1, 2)))
	assert report_fetch.before_cutoff(pull, utc(2018, 1, 1))
	pull["closed_at"] = "2018-01-03T00:00:00+00:00"
	assert not report_fetch.before_cutoff(pull, utc(2018, 1, 1))


#============================================
def test_fetch_all_waits_out_rate_limit_on_merger(monkeypatch) -> None:
	"""
	A rate-limited merger lookup delays the repository instead of dropping it.
	"""
	monkeypatch.setattr(github_client.time, "sleep", lambda seconds: None)

	class MergedPull:
		number = 3
		state = "closed"
		title = "Merged"
		html_url = "https://github.com/acme/widget/pull/3"
		user = fake_user("alice")
		created_at = utc(2018, 1, 5)
		updated_at = utc(2018, 1, 9)
		closed_at = utc(2018, 1, 9)
		merged_at = utc(2018, 1, 9)
		failures = 1

		@property
		def merged_by(self):
			if MergedPull.failures > 0:
				MergedPull.failures -= 1
				raise RateLimitExceededException(403, {"message": "API rate limit exceeded"}, {})
			return fake_user("bob")

		def get_review_comments(self):
			return FakePaginatedList([])

		def get_reviews(self):
			return FakePaginatedList([])

	repo = FakeRepo([MergedPull()], [])
	registry = UserRegistry()
	client = make_stub_client({"acme/widget": repo})
	client.client.rate_limiting_resettime = utc(2018, 1, 1)
	fetcher = report_fetch.ReportFetcher(client, registry)
	fetched, items = fetcher.fetch_all(["acme/widget"])
	assert fetched == ["acme/widget"]
	assert [item.id for item in items] == ["acme/widget#3"]
	assert items[0].merged_by is registry.get("bob")


#============================================
def test_fetch_all_skips_repo_with_network_error() -> None:
	"""
	A connection failure on one repository leaves the next one reported.
	"""
	repo = FakeRepo([fake_pull(1, utc(2018, 1, 5), utc(2018, 1, 8))], [])
	client = make_stub_client({"acme/widget": repo})
	serve_repo = client.client.get_repo

	def get_repo(full_name: str):
		if full_name == "acme/a":
			raise requests.exceptions.ConnectionError("reset")
		return serve_repo(full_name)

	client.client.get_repo = get_repo
	fetcher = report_fetch.ReportFetcher(client, UserRegistry())
	fetched, items = fetcher.fetch_all(["acme/a", "acme/widget"])
	assert fetched == ["acme/widget"]
	assert [item.id for item in items] == ["acme/widget#1"]


#============================================
def test_fetch_all_skips_repo_with_unreadable_reset_time() -> None:
	repo = FakeRepo([fake_pull(1, utc(2018, 1, 5), utc(2018, 1, 8))], [])
	client = make_stub_client({"acme/widget": repo})
	client.client.rate_limiting = (0, 5000)
	client.client.rate_limiting_resettime = None
	fetcher = report_fetch.ReportFetcher(client, UserRegistry())
	fetched, items = fetcher.fetch_all(["acme/widget"])
	assert fetched == []
	assert items == []
