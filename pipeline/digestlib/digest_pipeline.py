"""End-to-end digest run: collect, diff, summarize, merge, deliver.

Everything runs sequentially; each external call finishes before the next
step starts.
"""

# Standard Library
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from zoneinfo import ZoneInfo

# local repo modules
from digestlib import branch_collector
from digestlib import diff_extractor
from digestlib import git_commands
from digestlib import report_sink
from digestlib import summary_reducer


#============================================
@dataclass
class DigestResult:
	commit_count: int = 0
	report_text: str = ""
	delivered: bool = False
	degraded_levels: list = field(default_factory=list)


#============================================
def compute_date_label(timezone_name: str, now: datetime = None) -> str:
	"""
	Return today's date as YYYY-MM-DD in the report timezone.
	"""
	tz = ZoneInfo(timezone_name)
	if now is None:
		return datetime.now(tz).strftime("%Y-%m-%d")
	if now.tzinfo is None:
		return now.strftime("%Y-%m-%d")
	return now.astimezone(tz).strftime("%Y-%m-%d")


#============================================
def _log(log_fn, message: str) -> None:
	if log_fn is not None:
		log_fn(message)


#============================================
def summarize_records(generate_fn, git_fn, records: list, config, log_fn=None) -> list:
	"""
	Summarize each commit in order and return (record, node) pairs.
	"""
	items = []
	for i, record in enumerate(records, start=1):
		_log(log_fn, f"Commit {i}/{len(records)}: {record.short_sha} {record.title}")
		patch = diff_extractor.get_commit_diff(git_fn, record.sha)
		node = summary_reducer.summarize_commit(
			generate_fn,
			record,
			patch,
			config.chunk_max_chars,
			config.language,
			log_fn=log_fn,
		)
		items.append((record, node))
	return items


#============================================
def run_digest(
	config,
	generate_fn,
	git_fn=None,
	deliver_fn=None,
	log_fn=None,
	now: datetime = None,
) -> DigestResult:
	"""
	Run one digest for the configured repository and window.

	Args:
		config: DigestConfig for this run.
		generate_fn: callable(prompt, purpose) -> str.
		git_fn: best-effort git callable; defaults to one bound to
			config.repo_path.
		deliver_fn: callable(text) -> bool; defaults to the webhook sink.
		log_fn: optional callable for progress logging.
		now: clock override for the report date label.

	Returns:
		DigestResult; commit_count is 0 and nothing is delivered when the
		window holds no qualifying commits.
	"""
	if git_fn is None:
		git_fn = git_commands.make_git_fn(config.repo_path, best_effort=True, log_fn=log_fn)
	if deliver_fn is None:
		def deliver_fn(text: str) -> bool:
			return report_sink.deliver_report(text, config.webhook_url, log_fn=log_fn)

	if config.fetch_before_collect:
		branch_collector.fetch_remotes(git_fn, log_fn=log_fn)

	records = branch_collector.collect_commit_records(git_fn, config, log_fn=log_fn)
	if not records:
		_log(log_fn, f"No qualifying commits on any branch in the last {config.days_back} day(s); done.")
		return DigestResult()
	_log(log_fn, f"Reporting on {len(records)} commit(s)")

	items = summarize_records(generate_fn, git_fn, records, config, log_fn=log_fn)
	result = DigestResult(commit_count=len(records))
	for record, node in items:
		if node.degraded:
			result.degraded_levels.append(f"{node.level}:{record.short_sha}")

	daily_node = summary_reducer.merge_daily_summary(
		generate_fn,
		items,
		date_label=compute_date_label(config.timezone, now),
		period_label=summary_reducer.period_label(config.days_back),
		repo_label=config.repo_label,
		language=config.language,
		log_fn=log_fn,
	)
	if daily_node.degraded:
		result.degraded_levels.append(daily_node.level)

	result.report_text = report_sink.format_report(daily_node.text, config.keyword)
	result.delivered = bool(deliver_fn(result.report_text))
	return result
