"""Collect the deduplicated, chronologically ordered commits of a window.

Commits are gathered per remote branch (capped per branch), folded into a
hash -> branches index, and then ordered by the oldest-first listing of
all refs so that a commit reachable from several branches is reported
once, in its global position, tagged with every branch that holds it.
"""

# Standard Library
from dataclasses import dataclass

# local repo modules
from digestlib import git_commands


#============================================
@dataclass(frozen=True)
class CommitRecord:
	sha: str
	title: str
	author: str
	url: str
	branches: tuple

	@property
	def short_sha(self) -> str:
		return self.sha[:7]


#============================================
def resolve_window(days_back: int) -> tuple[str, str]:
	"""
	Return git --since/--until values for a lookback window.

	One day means "since local midnight"; longer windows count back
	whole days from now.
	"""
	if days_back <= 1:
		return "midnight", "now"
	return f"{days_back}.days.ago", "now"


#============================================
def fetch_remotes(git_fn, log_fn=None) -> None:
	"""
	Refresh remote-tracking refs before collection.

	Uses a best-effort git_fn; a failed fetch leaves whatever refs are
	already present locally.
	"""
	if log_fn:
		log_fn("Fetching all remotes")
	git_fn(["fetch", "--all", "--prune", "--tags"])


#============================================
def list_remote_branches(git_fn, remote: str = "origin") -> list[str]:
	"""
	List remote-tracking branches, excluding the symbolic HEAD pointer.
	"""
	output = git_fn(["for-each-ref", "--format=%(refname:short)", f"refs/remotes/{remote}"])
	head_names = {f"{remote}/HEAD", remote}
	branches = []
	for name in git_commands.split_lines(output):
		if name in head_names:
			continue
		branches.append(name)
	return branches


#============================================
def list_commit_hashes(git_fn, ref, since: str, until: str) -> list[str]:
	"""
	List non-merge commit hashes in the window, oldest first.

	Args:
		git_fn: git callable.
		ref: branch name, or None for the union of all refs.
		since: git --since value.
		until: git --until value.

	Returns:
		List of full commit hashes.
	"""
	args = ["log"]
	if ref is None:
		args.append("--all")
	else:
		args.append(ref)
	args.extend([
		"--no-merges",
		f"--since={since}",
		f"--until={until}",
		"--pretty=format:%H",
		"--reverse",
	])
	return git_commands.split_lines(git_fn(args))


#============================================
def build_branch_index(
	git_fn,
	branches: list[str],
	since: str,
	until: str,
	per_branch_limit: int,
	log_fn=None,
) -> dict[str, list[str]]:
	"""
	Map each branch to its most recent per_branch_limit hashes, oldest first.
	"""
	index = {}
	for branch in branches:
		hashes = list_commit_hashes(git_fn, branch, since, until)
		if log_fn:
			log_fn(f"Branch {branch}: {len(hashes)} commit(s)")
		# keep the tail so truncation drops the oldest history
		if len(hashes) > per_branch_limit:
			hashes = hashes[-per_branch_limit:]
		index[branch] = hashes
	return index


#============================================
def build_reverse_index(branch_index: dict[str, list[str]]) -> dict[str, set]:
	"""
	Invert a branch index into hash -> set of branch names.
	"""
	reverse = {}
	for branch, hashes in branch_index.items():
		for sha in hashes:
			if sha not in reverse:
				reverse[sha] = set()
			reverse[sha].add(branch)
	return reverse


#============================================
def order_reporting_set(all_hashes: list[str], reverse_index: dict[str, set]) -> list[str]:
	"""
	Deduplicate the global listing by first occurrence and keep tracked hashes.
	"""
	seen = set()
	ordered = []
	for sha in all_hashes:
		if sha in seen:
			continue
		if sha not in reverse_index:
			continue
		seen.add(sha)
		ordered.append(sha)
	return ordered


#============================================
def build_commit_url(server_url: str, repo_slug: str, sha: str) -> str:
	"""
	Build the web URL of one commit.
	"""
	base = server_url.rstrip("/")
	if repo_slug:
		return f"{base}/{repo_slug}/commit/{sha}"
	return f"{base}/commit/{sha}"


#============================================
def read_commit_meta(git_fn, sha: str) -> tuple[str, str]:
	"""
	Return (subject line, author name) of a commit.
	"""
	title = git_fn(["show", "-s", "--format=%s", sha])
	author = git_fn(["show", "-s", "--format=%an", sha])
	return title, author


#============================================
def collect_commit_records(git_fn, config, log_fn=None) -> list:
	"""
	Produce the ordered CommitRecord list for the configured window.

	Args:
		git_fn: best-effort git callable (failures read as empty output).
		config: DigestConfig with days_back, per_branch_limit, remote,
			server_url and repo_slug.
		log_fn: optional callable for progress logging.

	Returns:
		CommitRecords in oldest-first order; empty when nothing qualifies.
	"""
	since, until = resolve_window(config.days_back)
	if log_fn:
		log_fn(f"Window: {since} to {until}")

	branches = list_remote_branches(git_fn, config.remote)
	if log_fn:
		log_fn(f"Remote branches: {', '.join(branches) or 'none'}")

	branch_index = build_branch_index(
		git_fn, branches, since, until, config.per_branch_limit, log_fn=log_fn,
	)
	reverse_index = build_reverse_index(branch_index)

	all_hashes = list_commit_hashes(git_fn, None, since, until)
	if log_fn:
		log_fn(f"All refs: {len(all_hashes)} commit(s)")
	ordered = order_reporting_set(all_hashes, reverse_index)

	records = []
	for sha in ordered:
		title, author = read_commit_meta(git_fn, sha)
		record = CommitRecord(
			sha=sha,
			title=title,
			author=author,
			url=build_commit_url(config.server_url, config.repo_slug, sha),
			branches=tuple(sorted(reverse_index[sha])),
		)
		records.append(record)
	return records
