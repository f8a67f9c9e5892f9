from datetime import datetime
from datetime import timezone

from ghlib.users import User
from ghlib.users import UserRegistry


#============================================
def parse_timestamp(value) -> datetime | None:
	"""
	Parse ISO text or a datetime into a timezone-aware UTC datetime.
	"""
	if value is None or value == "":
		return None
	if isinstance(value, datetime):
		parsed = value
	else:
		parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
	if parsed.tzinfo is None:
		return parsed.replace(tzinfo=timezone.utc)
	return parsed.astimezone(timezone.utc)


#============================================
class Comment:
	"""
	One timestamped contribution on an item: a comment or a review.
	"""

	def __init__(self, created_at: datetime, user: User | None = None):
		self.created_at = created_at
		self.user = user

	def __repr__(self) -> str:
		login = self.user.login if self.user is not None else None
		return f"Comment({self.created_at.isoformat()}, {login!r})"


#============================================
def comment_from_raw(raw_comment: dict, registry: UserRegistry) -> Comment | None:
	"""
	Build a Comment from an issue comment or PR review comment record.
	"""
	user = registry.resolve(raw_comment.get("user"))
	created_at = parse_timestamp(raw_comment.get("created_at"))
	if created_at is None:
		return None
	return Comment(created_at, user)


#============================================
def comment_from_review(raw_review: dict, registry: UserRegistry) -> Comment | None:
	"""
	Build a Comment from a PR review; the submission time is its timestamp.
	"""
	user = registry.resolve(raw_review.get("user"))
	submitted_at = parse_timestamp(raw_review.get("submitted_at"))
	# pending reviews have no submission time
	if submitted_at is None:
		return None
	return Comment(submitted_at, user)


#============================================
class Item:
	"""
	An issue or pull request with its comment and review timeline.
	"""

	def __init__(
		self,
		is_pr: bool,
		repo: str,
		number: int,
		title: str = "",
		url: str = "",
		state: str = "",
		created_by: User | None = None,
		created_at: datetime | None = None,
		updated_at: datetime | None = None,
		closed_at: datetime | None = None,
		comments: list[Comment] | None = None,
		merged: bool = False,
		merged_at: datetime | None = None,
		merged_by: User | None = None,
	):
		self.is_pr = is_pr
		self.repo = repo
		self.number = int(number)
		self.id = f"{repo}#{self.number}"
		self.title = title
		self.url = url
		self.state = state
		self.created_by = created_by
		self.created_at = created_at
		self.updated_at = updated_at
		self.closed_at = closed_at
		self.comments = list(comments or [])
		self.merged = bool(merged) if is_pr else False
		self.merged_at = merged_at if is_pr else None
		self.merged_by = merged_by if is_pr else None

	#============================================
	def other_contributors(self) -> list[User]:
		"""
		Comment and review authors besides creator and merger, ordered by login.
		"""
		seen = set()
		for comment in self.comments:
			user = comment.user
			if user is None or user is self.created_by or user is self.merged_by:
				continue
			seen.add(user)
		return sorted(seen, key=lambda user: user.login)

	#============================================
	def mentioned_users(self) -> list[User]:
		"""
		Every user display_line() references.
		"""
		users = []
		if self.created_by is not None:
			users.append(self.created_by)
		if self.merged_by is not None and self.merged_by is not self.created_by:
			users.append(self.merged_by)
		users.extend(self.other_contributors())
		return users

	#============================================
	def display_line(self) -> str:
		"""
		Render "<title> ([<id>] [@creator] [@merger] [@others])".
		"""
		parts = [f"[{self.id}]"]
		if self.created_by is not None:
			parts.append(self.created_by.mention())
		if self.merged_by is not None:
			parts.append(self.merged_by.mention())
		for user in self.other_contributors():
			parts.append(user.mention())
		return f"{self.title} ({' '.join(parts)})"

	#============================================
	def link(self) -> str:
		return f"[{self.id}]: {self.url}"

	def __repr__(self) -> str:
		kind = "PR" if self.is_pr else "Issue"
		return f"{kind}({self.id})"


#============================================
def item_from_pr(
	raw_pr: dict,
	repo: str,
	registry: UserRegistry,
	comments: list[dict] = (),
	reviews: list[dict] = (),
) -> Item:
	"""
	Build a PR Item from a raw pull record plus its comments and reviews.
	"""
	merged_at = parse_timestamp(raw_pr.get("merged_at"))
	merged = bool(raw_pr.get("merged"))
	# the merged flag is unreliable upstream; merged_at wins
	if merged_at is not None:
		merged = True
	item = Item(
		True,
		repo,
		raw_pr["number"],
		title=raw_pr.get("title") or "",
		url=raw_pr.get("html_url") or "",
		state=raw_pr.get("state") or "",
		created_by=registry.resolve(raw_pr.get("user")),
		created_at=parse_timestamp(raw_pr.get("created_at")),
		updated_at=parse_timestamp(raw_pr.get("updated_at")),
		closed_at=parse_timestamp(raw_pr.get("closed_at")),
		merged=merged,
		merged_at=merged_at,
		merged_by=registry.resolve(raw_pr.get("merged_by")),
	)
	for raw_comment in comments:
		comment = comment_from_raw(raw_comment, registry)
		if comment is not None:
			item.comments.append(comment)
	for raw_review in reviews:
		comment = comment_from_review(raw_review, registry)
		if comment is not None:
			item.comments.append(comment)
	return item


#============================================
def item_from_issue(
	raw_issue: dict,
	repo: str,
	registry: UserRegistry,
	comments: list[dict] = (),
) -> Item:
	"""
	Build an issue Item from a raw issue record plus its comments.
	"""
	item = Item(
		False,
		repo,
		raw_issue["number"],
		title=raw_issue.get("title") or "",
		url=raw_issue.get("html_url") or "",
		state=raw_issue.get("state") or "",
		created_by=registry.resolve(raw_issue.get("user")),
		created_at=parse_timestamp(raw_issue.get("created_at")),
		updated_at=parse_timestamp(raw_issue.get("updated_at")),
		closed_at=parse_timestamp(raw_issue.get("closed_at")),
	)
	for raw_comment in comments:
		comment = comment_from_raw(raw_comment, registry)
		if comment is not None:
			item.comments.append(comment)
	return item


#============================================
def sort_items(items) -> list[Item]:
	"""
	Canonical order: repository name, then number.
	"""
	return sorted(items, key=lambda item: (item.repo, item.number))
