from dataclasses import dataclass
from dataclasses import field

from ghlib.items import Item
from ghlib.period import Period
from ghlib.users import User
from ghlib.users import UserRegistry


#============================================
@dataclass
class RepoSummary:
	"""
	Repository-mode buckets and counters for one period.
	"""
	merged_prs: list[Item] = field(default_factory=list)
	closed_issues: list[Item] = field(default_factory=list)
	updated: list[Item] = field(default_factory=list)
	users: set[User] = field(default_factory=set)
	contributors: set[User] = field(default_factory=set)
	contributions: int = 0
	prs_opened: int = 0
	issues_opened: int = 0

	@property
	def contributor_count(self) -> int:
		return len(self.contributors)

	@property
	def prs_merged(self) -> int:
		return len(self.merged_prs)

	@property
	def issues_closed(self) -> int:
		return len(self.closed_issues)

	#============================================
	def report_items(self) -> list[Item]:
		return self.merged_prs + self.closed_issues + self.updated


#============================================
@dataclass
class UserActivity:
	"""
	User-mode buckets for one target login.
	"""
	login: str
	prs: list[Item] = field(default_factory=list)
	reviewed_prs: list[Item] = field(default_factory=list)
	issues: list[Item] = field(default_factory=list)
	commented_issues: list[Item] = field(default_factory=list)

	#============================================
	def report_items(self) -> list[Item]:
		return self.prs + self.reviewed_prs + self.issues + self.commented_issues


#============================================
def summarize_repos(items: list[Item], period: Period) -> RepoSummary:
	"""
	Classify items into merged, closed and updated buckets for a period.

	Each item lands in at most one bucket. Closing in the period decides
	first; otherwise any creation or comment inside the period makes the
	item "updated", and items without in-period activity are left out.
	Contributions count creations and comments only, a merge adds the
	merger to the contributors but does not count as a contribution.
	"""
	summary = RepoSummary()
	for item in items:
		if item.created_by is not None:
			summary.users.add(item.created_by)

		touched = False
		for comment in item.comments:
			if comment.user is not None:
				summary.users.add(comment.user)
			if not period.contains(comment.created_at):
				continue
			touched = True
			summary.contributions += 1
			if comment.user is not None:
				summary.contributors.add(comment.user)

		if period.contains(item.created_at):
			touched = True
			summary.contributions += 1
			if item.created_by is not None:
				summary.contributors.add(item.created_by)
			if item.is_pr:
				summary.prs_opened += 1
			else:
				summary.issues_opened += 1

		if period.contains(item.closed_at):
			if item.is_pr and item.merged:
				summary.merged_prs.append(item)
				if item.merged_by is not None:
					summary.users.add(item.merged_by)
					summary.contributors.add(item.merged_by)
			elif item.is_pr:
				summary.updated.append(item)
			else:
				summary.closed_issues.append(item)
		elif touched:
			summary.updated.append(item)
	return summary


#============================================
def commented_in_period(item: Item, period: Period, user: User) -> bool:
	"""
	True when user has a comment or review on item inside the period.
	"""
	for comment in item.comments:
		if comment.user is user and period.contains(comment.created_at):
			return True
	return False


#============================================
def summarize_user(
	items: list[Item],
	period: Period,
	login: str,
	registry: UserRegistry,
) -> UserActivity:
	"""
	Collect the PRs and issues one user created, reviewed or commented on.
	"""
	activity = UserActivity(login=login)
	user = registry.get(login)
	if user is None:
		return activity
	for item in items:
		created_by_user = (item.created_by is user) and period.contains(item.created_at)
		if item.is_pr:
			if created_by_user:
				activity.prs.append(item)
			elif period.contains(item.closed_at) and item.merged_by is user:
				activity.reviewed_prs.append(item)
			elif commented_in_period(item, period, user):
				activity.reviewed_prs.append(item)
		else:
			if created_by_user:
				activity.issues.append(item)
			elif commented_in_period(item, period, user):
				activity.commented_issues.append(item)
	return activity


#============================================
def split_recent(items: list[Item]) -> tuple[list[Item], list[Item]]:
	"""
	Split items into PRs and issues for the unbounded report.
	"""
	prs = [item for item in items if item.is_pr]
	issues = [item for item in items if not item.is_pr]
	return prs, issues
