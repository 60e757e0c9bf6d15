"""Per-commit unified diff with lock files and build output filtered out."""

# local repo modules
from digestlib import git_commands


# SHA-1 id of the empty tree, used when hash-object is unavailable
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

FILE_EXCLUDES = (
	":!**/*.lock",
	":!**/dist/**",
	":!**/build/**",
	":!**/.next/**",
	":!**/.vite/**",
	":!**/out/**",
	":!**/coverage/**",
	":!package-lock.json",
	":!pnpm-lock.yaml",
	":!yarn.lock",
	":!**/*.min.*",
)


#============================================
def get_parent_sha(git_fn, sha: str) -> str:
	"""
	Return the first parent of a commit, or "" for a root commit.
	"""
	line = git_fn(["rev-list", "--parents", "-n", "1", sha])
	parts = line.split()
	if len(parts) < 2:
		return ""
	return parts[1]


#============================================
def get_empty_tree_sha(git_fn) -> str:
	"""
	Return the empty tree id of the repository's hash algorithm.
	"""
	tree_sha = git_fn(["hash-object", "-t", "tree", "/dev/null"]).strip()
	if tree_sha:
		return tree_sha
	return EMPTY_TREE_SHA


#============================================
def get_commit_diff(git_fn, sha: str, excludes=FILE_EXCLUDES) -> str:
	"""
	Return the zero-context diff of a commit against its first parent.

	Root commits diff against the empty tree. An empty string means
	there is nothing to summarize: the command failed, the commit was
	empty, or every changed path matched an exclude.

	Args:
		git_fn: git callable.
		sha: commit hash.
		excludes: git pathspec excludes.

	Returns:
		Unified diff text or "".
	"""
	try:
		parent = get_parent_sha(git_fn, sha)
		base = parent or get_empty_tree_sha(git_fn)
		args = ["diff", "--unified=0", "--minimal", base, sha, "--", "."]
		args.extend(excludes)
		return git_fn(args)
	except git_commands.GitCommandError:
		return ""
