#!/usr/bin/env python3
import argparse
import sys

from ghlib import aggregate
from ghlib import github_client
from ghlib import render
from ghlib import report_fetch
from ghlib import report_log
from ghlib import report_settings
from ghlib.items import Item
from ghlib.period import ParseError
from ghlib.period import Period
from ghlib.users import UserRegistry


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Summarize GitHub PR and issue activity as a Markdown report."
	)
	parser.add_argument(
		"--token",
		default="",
		help="GitHub access token (falls back to settings.yaml github.token).",
	)
	window_group = parser.add_mutually_exclusive_group(required=True)
	window_group.add_argument(
		"--month",
		default="",
		help="Month to report on, e.g. 2018-01.",
	)
	window_group.add_argument(
		"--week",
		default="",
		help="ISO week to report on, e.g. 2018-8.",
	)
	window_group.add_argument(
		"--items",
		type=int,
		default=None,
		help="List the most recent N PRs and issues per repository instead of a period.",
	)
	parser.add_argument(
		"--user",
		default="",
		help="Report the activity of one GitHub login instead of per repository.",
	)
	parser.add_argument(
		"-v",
		"--verbose",
		type=int,
		default=None,
		help="Verbosity level: 0 warnings, 1 progress, 2 debug.",
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path for defaults.",
	)
	parser.add_argument(
		"repos",
		nargs="*",
		metavar="owner/repo",
		help="Repositories to report on (falls back to settings.yaml github.repos).",
	)
	args = parser.parse_args(argv)
	if args.items is not None and args.items < 1:
		parser.error("--items must be at least 1")
	if args.user and args.items is not None:
		parser.error("--user needs --month or --week")
	return args


#============================================
def fatal(message: str) -> None:
	"""
	Log one error line and stop the process.
	"""
	report_log.warn(message)
	sys.exit(1)


#============================================
def resolve_period(args: argparse.Namespace) -> Period | None:
	"""
	Build the reporting period from --month or --week, None for --items.
	"""
	if args.month:
		return Period.from_month(args.month)
	if args.week:
		return Period.from_iso_week(args.week)
	return None


#============================================
def build_report(
	items: list[Item],
	registry: UserRegistry,
	repos: list[str],
	period: Period | None = None,
	login: str = "",
	limit: int = 0,
) -> str:
	"""
	Aggregate fetched items and render the Markdown report.
	"""
	if period is None:
		prs, issues = aggregate.split_recent(items)
		return render.render_recent_report(prs, issues, limit, repos, registry.users())
	if login:
		activity = aggregate.summarize_user(items, period, login, registry)
		return render.render_user_report(activity, period, repos, registry.users())
	summary = aggregate.summarize_repos(items, period)
	return render.render_repo_report(summary, period, repos)


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Fetch activity for the given repositories and print the report.
	"""
	args = parse_args(argv)
	try:
		settings, settings_path = report_settings.load_settings(args.settings)
		verbosity = report_settings.resolve_verbosity(args.verbose, settings)
	except RuntimeError as error:
		fatal(str(error))
	report_log.set_verbosity(verbosity)
	report_log.info(f"Using settings file: {settings_path}")

	token = report_settings.resolve_token(args.token, settings)
	if not token:
		fatal("Please specify an access token with --token or settings.yaml github.token.")
	try:
		period = resolve_period(args)
	except ParseError as error:
		fatal(f"Error parsing period: {error}")
	repos = report_settings.resolve_repos(args.repos, settings)
	if not repos:
		fatal("Please specify at least one owner/repo.")
	if period is not None:
		report_log.info(f"FROM {period.start.isoformat()} TO {period.end.isoformat()}")

	client = github_client.GitHubClient(token, log_fn=report_log.warn, info_fn=report_log.info)
	registry = UserRegistry()
	fetcher = report_fetch.ReportFetcher(client, registry)
	since = period.start if period is not None else None
	limit = args.items or 0
	fetched_repos, items = fetcher.fetch_all(repos, since=since, limit=limit)

	report = build_report(
		items,
		registry,
		fetched_repos,
		period=period,
		login=args.user.strip().lstrip("@"),
		limit=limit,
	)
	sys.stdout.write(report)
	usage = client.api_usage_snapshot()
	report_log.info(
		"GitHub API usage: "
		+ f"calls={usage.get('api_call_count', 0)}, "
		+ f"rate_waits={usage.get('rate_wait_count', 0)}"
	)


if __name__ == "__main__":
	main()
