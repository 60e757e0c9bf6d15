"""Thin git subprocess helpers shared by the collector and diff extractor."""

# Standard Library
import subprocess


#============================================
class GitCommandError(RuntimeError):
	"""
	Raised when a git command exits non-zero.
	"""


#============================================
def run_git(args: list[str], cwd: str = ".") -> str:
	"""
	Run git and return stripped stdout.

	Args:
		args: git arguments without the leading 'git'.
		cwd: working directory of the repository checkout.

	Returns:
		Stripped stdout text.
	"""
	result = subprocess.run(
		["git"] + args,
		cwd=cwd,
		capture_output=True,
		text=True,
		check=False,
	)
	if result.returncode != 0:
		err_text = result.stderr.strip() or "unknown git error"
		raise GitCommandError(f"git {' '.join(args)} failed: {err_text}")
	return result.stdout.strip()


#============================================
def make_git_fn(cwd: str = ".", best_effort: bool = False, log_fn=None):
	"""
	Build a git callable bound to one checkout.

	In best-effort mode a failing command returns an empty string
	instead of raising, which is how every listing call is treated.

	Args:
		cwd: repository checkout path.
		best_effort: swallow GitCommandError and return "".
		log_fn: optional callable for failure logging.

	Returns:
		Callable(args: list[str]) -> str.
	"""
	def _git(args: list[str]) -> str:
		if not best_effort:
			return run_git(args, cwd=cwd)
		try:
			return run_git(args, cwd=cwd)
		except (GitCommandError, OSError) as error:
			if log_fn is not None:
				log_fn(f"WARNING: {error}")
			return ""
	return _git


#============================================
def split_lines(output: str) -> list[str]:
	"""
	Split command output into stripped non-empty lines.
	"""
	lines = []
	for line in output.split("\n"):
		text = line.strip()
		if text:
			lines.append(text)
	return lines
