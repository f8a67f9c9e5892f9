from datetime import datetime

import requests
from github import GithubException

from ghlib import github_client
from ghlib import report_log
from ghlib.items import Item
from ghlib.items import item_from_issue
from ghlib.items import item_from_pr
from ghlib.items import parse_timestamp
from ghlib.users import UserRegistry


#============================================
def split_owner_repo(owner_repo: str) -> tuple[str, str] | None:
	"""
	Split "owner/repo" into its parts, None when malformed.
	"""
	parts = (owner_repo or "").strip().split("/", 1)
	if len(parts) != 2:
		return None
	owner, repo = parts[0].strip(), parts[1].strip()
	if not owner or not repo or "/" in repo:
		return None
	return owner, repo


#============================================
def before_cutoff(raw_record: dict, since: datetime) -> bool:
	"""
	True when creation, last update and closing all predate the cutoff.
	"""
	for key in ("created_at", "updated_at", "closed_at"):
		value = parse_timestamp(raw_record.get(key))
		if value is not None and value >= since:
			return False
	return True


#============================================
class ReportFetcher:
	"""
	Build Items for one repository through the GitHub client.
	"""

	def __init__(self, client: github_client.GitHubClient, registry: UserRegistry):
		self.client = client
		self.registry = registry

	#============================================
	def fetch_pulls(self, repo_obj, owner_repo: str, since: datetime | None, limit: int) -> list[Item]:
		"""
		Build PR items, newest updates first, stopping at the cutoff.
		"""
		prs = []
		report_log.info("Handling PRs:")
		for pr_obj in self.client.list_pulls(repo_obj):
			report_log.info(f"Handle PR: {owner_repo}#{pr_obj.number} {pr_obj.title}")
			raw_pr = github_client.pull_to_dict(pr_obj)
			report_log.debug(f"{raw_pr}")
			# pulls have no "since" filter, so the listing ends here
			if since is not None and before_cutoff(raw_pr, since):
				break
			if raw_pr["merged_at"]:
				raw_pr["merged_by"] = self.client.get_merged_by(pr_obj)
			pr = item_from_pr(
				raw_pr,
				owner_repo,
				self.registry,
				comments=self.client.list_review_comments(pr_obj),
				reviews=self.client.list_reviews(pr_obj),
			)
			prs.append(pr)
			if limit > 0 and len(prs) >= limit:
				break
		return prs

	#============================================
	def fetch_issues(self, repo_obj, owner_repo: str, since: datetime | None, limit: int) -> list[Item]:
		"""
		Build issue items, skipping rows that are pull requests.
		"""
		issues = []
		report_log.info("Handling Issues:")
		for issue_obj in self.client.list_issues(repo_obj, since):
			if github_client.is_pull_request(issue_obj):
				continue
			report_log.info(f"Handle Issue: {owner_repo}#{issue_obj.number} {issue_obj.title}")
			raw_issue = github_client.issue_to_dict(issue_obj)
			report_log.debug(f"{raw_issue}")
			issue = item_from_issue(
				raw_issue,
				owner_repo,
				self.registry,
				comments=self.client.list_issue_comments(issue_obj),
			)
			issues.append(issue)
			if limit > 0 and len(issues) >= limit:
				break
		return issues

	#============================================
	def fetch_repo(self, owner_repo: str, since: datetime | None = None, limit: int = 0) -> tuple[list[Item], list[Item]]:
		"""
		Fetch PR and issue items of one "owner/repo".
		"""
		repo_obj = self.client.get_repo(owner_repo)
		prs = self.fetch_pulls(repo_obj, owner_repo, since, limit)
		issues = self.fetch_issues(repo_obj, owner_repo, since, limit)
		return prs, issues

	#============================================
	def fetch_all(self, repos: list[str], since: datetime | None = None, limit: int = 0) -> tuple[list[str], list[Item]]:
		"""
		Fetch every repository, skipping malformed names and failed fetches.

		Returns the repositories that were fetched and their combined items.
		"""
		fetched_repos = []
		items = []
		for owner_repo in repos:
			if split_owner_repo(owner_repo) is None:
				report_log.warn(f"{owner_repo} is malformed; skipping.")
				continue
			report_log.info(f"Processing repo: {owner_repo}")
			try:
				prs, issues = self.fetch_repo(owner_repo, since=since, limit=limit)
			except (
				GithubException,
				requests.exceptions.RequestException,
				github_client.RateLimitError,
			) as error:
				report_log.warn(f"Error getting PRs and issues for {owner_repo}: {error}; skipping.")
				continue
			report_log.info(
				f"Repo {owner_repo}: collected {len(prs)} PR(s) and {len(issues)} issue(s)."
			)
			fetched_repos.append(owner_repo)
			items.extend(prs)
			items.extend(issues)
		return fetched_repos, items
