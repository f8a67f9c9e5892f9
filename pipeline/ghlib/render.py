from ghlib.aggregate import RepoSummary
from ghlib.aggregate import UserActivity
from ghlib.items import Item
from ghlib.items import sort_items
from ghlib.period import Period
from ghlib.users import User


#============================================
def describe_repos(repos: list[str]) -> str:
	if not repos:
		return "no repositories"
	return ", ".join(repos)


#============================================
def render_section(title: str, items: list[Item]) -> list[str]:
	"""
	Render one bullet-list section, or nothing when empty.
	"""
	if not items:
		return []
	lines = [f"## {title}"]
	for item in sort_items(items):
		lines.append(f"- {item.display_line()}")
	lines.append("")
	return lines


#============================================
def render_links(items: list[Item], users) -> list[str]:
	"""
	Link appendix: items in canonical order, then users by login.

	Users mentioned by a listed item are always defined, even when the
	caller's user set leaves them out.
	"""
	lines = []
	seen_ids = set()
	link_users = set(users)
	for item in sort_items(items):
		if item.id in seen_ids:
			continue
		seen_ids.add(item.id)
		lines.append(item.link())
		link_users.update(item.mentioned_users())
	for user in sorted(link_users, key=lambda value: value.login):
		lines.append(user.link())
	return lines


#============================================
def finish(lines: list[str]) -> str:
	return "\n".join(lines).rstrip("\n") + "\n"


#============================================
def render_repo_report(summary: RepoSummary, period: Period, repos: list[str]) -> str:
	"""
	Render the per-repository digest.
	"""
	lines = [f"# Report for {period.label}", ""]
	lines.append(
		f"In {period.label} there were {summary.contributions} contributions "
		+ f"from {summary.contributor_count} contributors across {describe_repos(repos)}. "
		+ f"{summary.prs_opened} PRs were opened and {summary.prs_merged} PRs were merged. "
		+ f"{summary.issues_opened} issues were opened and {summary.issues_closed} issues were closed."
	)
	lines.append("")
	lines.extend(render_section("Merged PRs:", summary.merged_prs))
	lines.extend(render_section("Closed Issues:", summary.closed_issues))
	lines.extend(render_section("New or updated PRs and Issues (not closed):", summary.updated))
	lines.extend(render_links(summary.report_items(), summary.users))
	return finish(lines)


#============================================
def render_user_report(
	activity: UserActivity,
	period: Period,
	repos: list[str],
	users: list[User],
) -> str:
	"""
	Render the activity breakdown of one user.
	"""
	lines = [f"# Report for {period.label}", ""]
	lines.append(
		f"In {period.label} [@{activity.login}] opened {len(activity.prs)} PRs, "
		+ f"reviewed {len(activity.reviewed_prs)} PRs, "
		+ f"opened {len(activity.issues)} issues and "
		+ f"commented on {len(activity.commented_issues)} issues "
		+ f"across {describe_repos(repos)}."
	)
	lines.append("")
	lines.extend(render_section("PRs:", activity.prs))
	lines.extend(render_section("Reviewed PRs:", activity.reviewed_prs))
	lines.extend(render_section("Issues:", activity.issues))
	lines.extend(render_section("Issues commented on:", activity.commented_issues))
	lines.extend(render_links(activity.report_items(), users))
	return finish(lines)


#============================================
def render_recent_report(
	prs: list[Item],
	issues: list[Item],
	limit: int,
	repos: list[str],
	users: list[User],
) -> str:
	"""
	Render the unbounded "most recent N" listing.
	"""
	lines = [f"# Report for the most recent {limit} PRs and issues", ""]
	lines.append(
		f"Listing {len(prs)} PRs and {len(issues)} issues across {describe_repos(repos)}."
	)
	lines.append("")
	lines.extend(render_section("PRs:", prs))
	lines.extend(render_section("Issues:", issues))
	lines.extend(render_links(prs + issues, users))
	return finish(lines)
