"""Three-level summary reduction: diff chunk -> commit -> daily digest.

Every level calls an injected generate_fn(prompt, purpose) -> str. A failed
call never aborts the run: the level substitutes a fallback text and marks
its SummaryNode as degraded, so later levels still receive a string.
"""

# Standard Library
from dataclasses import dataclass

# local repo modules
from digestlib import diff_chunker
from digestlib import prompt_loader


LEVEL_CHUNK = "chunk"
LEVEL_COMMIT = "commit"
LEVEL_DAILY = "daily"

EMPTY_DIFF_PLACEHOLDER = (
	"(No reviewable changes: the diff was empty or every path was filtered, "
	"e.g. lock files, build output or binaries, or this is an empty commit)"
)
DAILY_FAILURE_NOTICE = "(Daily merge failed; raw per-commit summaries follow)"
COMMIT_SEPARATOR = "\n\n---\n\n"


#============================================
@dataclass(frozen=True)
class SummaryNode:
	level: str
	text: str
	inputs: tuple = ()
	degraded: bool = False


#============================================
def _branches_text(record) -> str:
	return ", ".join(record.branches)


#============================================
def build_chunk_prompt(record, index: int, total: int, chunk: str, language: str) -> str:
	"""
	Render the per-chunk prompt; index is 1-based.
	"""
	values = {
		"sha_short": record.short_sha,
		"sha": record.sha,
		"title": record.title,
		"author": record.author,
		"branches": _branches_text(record),
		"url": record.url,
		"part_index": str(index),
		"part_total": str(total),
		"language": language,
		"patch": chunk,
	}
	return prompt_loader.render_named_prompt("commit_chunk_summary.txt", values)


#============================================
def build_commit_merge_prompt(record, part_texts: list[str], language: str) -> str:
	"""
	Render the prompt merging part summaries into one commit summary.
	"""
	blocks = []
	for i, text in enumerate(part_texts, start=1):
		blocks.append(f"[Part {i}]\n{text}")
	values = {
		"sha_short": record.short_sha,
		"language": language,
		"parts_block": "\n\n".join(blocks),
	}
	return prompt_loader.render_named_prompt("commit_merge_summary.txt", values)


#============================================
def format_commit_block(record, summary_text: str, include_author: bool = True) -> str:
	"""
	Render one tagged commit entry for the daily prompt or fallback listing.
	"""
	header = f"[{record.short_sha}] {record.title}"
	if include_author:
		header += f" - {record.author}"
	header += f" - {_branches_text(record)}"
	return f"{header}\n{summary_text}"


#============================================
def build_daily_prompt(
	items: list,
	date_label: str,
	period_label: str,
	repo_label: str,
	language: str,
) -> str:
	"""
	Render the prompt merging all commit summaries into the digest.
	"""
	blocks = []
	for record, node in items:
		blocks.append(format_commit_block(record, node.text))
	values = {
		"date_label": date_label,
		"period_label": period_label,
		"repo_label": repo_label,
		"language": language,
		"commits_block": COMMIT_SEPARATOR.join(blocks),
	}
	return prompt_loader.render_named_prompt("daily_merge_summary.txt", values)


#============================================
def summarize_chunk(generate_fn, record, index: int, total: int, chunk: str, language: str) -> SummaryNode:
	"""
	Summarize one diff chunk of a commit.

	Args:
		generate_fn: callable(prompt, purpose) -> str.
		record: CommitRecord the chunk belongs to.
		index: 1-based chunk index.
		total: number of chunks in the commit.
		chunk: diff chunk text.
		language: output language for the summary.

	Returns:
		Chunk-level SummaryNode; degraded when the call failed or was empty.
	"""
	prompt = build_chunk_prompt(record, index, total, chunk, language)
	purpose = f"commit {record.short_sha} part {index}/{total}"
	try:
		text = generate_fn(prompt, purpose)
	except Exception as error:
		return SummaryNode(
			level=LEVEL_CHUNK,
			text=f"(Part {index} summary call failed: {error})",
			inputs=(chunk,),
			degraded=True,
		)
	if not (text or "").strip():
		return SummaryNode(
			level=LEVEL_CHUNK,
			text=f"(Part {index} summary was empty)",
			inputs=(chunk,),
			degraded=True,
		)
	return SummaryNode(level=LEVEL_CHUNK, text=text.strip(), inputs=(chunk,))


#============================================
def merge_commit_summary(
	generate_fn,
	record,
	chunk_nodes: list,
	language: str,
	log_fn=None,
) -> SummaryNode:
	"""
	Merge chunk summaries into one commit summary.

	Falls back to the chunk summaries joined by blank lines when the
	merge call fails or returns nothing.
	"""
	part_texts = [node.text for node in chunk_nodes]
	fallback = "\n\n".join(part_texts)
	prompt = build_commit_merge_prompt(record, part_texts, language)
	try:
		text = generate_fn(prompt, f"commit {record.short_sha} merge")
	except Exception as error:
		if log_fn:
			log_fn(f"WARNING: commit {record.short_sha} merge failed: {error}")
		return SummaryNode(
			level=LEVEL_COMMIT, text=fallback, inputs=tuple(part_texts), degraded=True,
		)
	if not (text or "").strip():
		if log_fn:
			log_fn(f"WARNING: commit {record.short_sha} merge returned empty text")
		return SummaryNode(
			level=LEVEL_COMMIT, text=fallback, inputs=tuple(part_texts), degraded=True,
		)
	degraded = any(node.degraded for node in chunk_nodes)
	return SummaryNode(
		level=LEVEL_COMMIT, text=text.strip(), inputs=tuple(part_texts), degraded=degraded,
	)


#============================================
def summarize_commit(
	generate_fn,
	record,
	patch: str,
	chunk_max_chars: int,
	language: str,
	log_fn=None,
) -> SummaryNode:
	"""
	Summarize one commit from its diff: chunk, map each chunk, merge.

	An empty or whitespace-only patch yields the explicit empty-diff
	placeholder without any generation call.

	Args:
		generate_fn: callable(prompt, purpose) -> str.
		record: CommitRecord being summarized.
		patch: the commit's diff text.
		chunk_max_chars: maximum characters per diff chunk.
		language: output language for the summary.
		log_fn: optional callable for progress logging.

	Returns:
		Commit-level SummaryNode.
	"""
	if not patch or not patch.strip():
		return SummaryNode(level=LEVEL_COMMIT, text=EMPTY_DIFF_PLACEHOLDER)
	chunks = diff_chunker.chunk_patch(patch, chunk_max_chars)
	if not chunks:
		return SummaryNode(level=LEVEL_COMMIT, text=EMPTY_DIFF_PLACEHOLDER)
	if log_fn:
		log_fn(f"Commit {record.short_sha}: {len(patch)} chars in {len(chunks)} chunk(s)")

	chunk_nodes = []
	for i, chunk in enumerate(chunks, start=1):
		node = summarize_chunk(generate_fn, record, i, len(chunks), chunk, language)
		if node.degraded and log_fn:
			log_fn(f"WARNING: commit {record.short_sha} part {i}: {node.text}")
		chunk_nodes.append(node)

	commit_node = merge_commit_summary(generate_fn, record, chunk_nodes, language, log_fn=log_fn)
	return commit_node


#============================================
def build_daily_fallback(items: list) -> str:
	"""
	Assemble the digest by hand from per-commit summaries.
	"""
	blocks = []
	for record, node in items:
		blocks.append(format_commit_block(record, node.text, include_author=False))
	return DAILY_FAILURE_NOTICE + "\n\n" + COMMIT_SEPARATOR.join(blocks)


#============================================
def merge_daily_summary(
	generate_fn,
	items: list,
	date_label: str,
	period_label: str,
	repo_label: str,
	language: str,
	log_fn=None,
) -> SummaryNode:
	"""
	Merge all commit summaries, in chronological order, into one digest.

	Args:
		generate_fn: callable(prompt, purpose) -> str.
		items: list of (CommitRecord, commit SummaryNode) pairs.
		date_label: report date, YYYY-MM-DD.
		period_label: "Today" or "Last N days".
		repo_label: repository name used in the heading.
		language: output language for the digest.
		log_fn: optional callable for progress logging.

	Returns:
		Daily-level SummaryNode; on failure the text is the manual listing
		prefixed with DAILY_FAILURE_NOTICE.
	"""
	inputs = tuple(node.text for _, node in items)
	prompt = build_daily_prompt(items, date_label, period_label, repo_label, language)
	try:
		text = generate_fn(prompt, "daily merge")
	except Exception as error:
		if log_fn:
			log_fn(f"WARNING: daily merge failed: {error}")
		return SummaryNode(
			level=LEVEL_DAILY, text=build_daily_fallback(items), inputs=inputs, degraded=True,
		)
	if not (text or "").strip():
		if log_fn:
			log_fn("WARNING: daily merge returned empty text")
		return SummaryNode(
			level=LEVEL_DAILY, text=build_daily_fallback(items), inputs=inputs, degraded=True,
		)
	return SummaryNode(level=LEVEL_DAILY, text=text.strip(), inputs=inputs)


#============================================
def period_label(days_back: int) -> str:
	"""
	Return the human label of a lookback window.
	"""
	if days_back <= 1:
		return "Today"
	return f"Last {days_back} days"
