#!/usr/bin/env python3
"""Summarize a repository's commits across all remote branches and post a digest.

Collects the non-merge commits of the lookback window from every
remote-tracking branch, summarizes each commit's diff chunk by chunk via
an OpenAI-compatible chat endpoint, merges the commit summaries into one
daily report, and posts it to a chat webhook (or prints it when no
webhook is configured).
"""

# Standard Library
import argparse
import os
from datetime import datetime

import dotenv
import rich.console

# local repo modules
from digestlib import chat_client
from digestlib import digest_pipeline
from digestlib import digest_settings


CONSOLE = rich.console.Console()


#============================================
def log_step(message: str, style: str = "cyan") -> None:
	"""
	Print one timestamped progress line with color.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	if message.startswith("WARNING"):
		style = "yellow"
	CONSOLE.print(f"[daily_commit_digest {now_text}] {message}", style=style, markup=False, highlight=False)


#============================================
def parse_args(argv=None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Post an LLM digest of recent commits across all remote branches."
	)
	parser.add_argument(
		'--settings', dest='settings',
		default=digest_settings.DEFAULT_SETTINGS_PATH,
		help="YAML settings path (default: settings.yaml).",
	)
	parser.add_argument(
		'-d', '--days-back', dest='days_back',
		type=int,
		default=None,
		help="Lookback window in days; 1 means since local midnight.",
	)
	parser.add_argument(
		'-r', '--repo-path', dest='repo_path',
		default=None,
		help="Path of the git checkout to report on (default: current directory).",
	)
	parser.add_argument(
		'-l', '--per-branch-limit', dest='per_branch_limit',
		type=int,
		default=None,
		help="Keep at most this many recent commits per branch.",
	)
	parser.add_argument(
		'-c', '--chunk-max-chars', dest='chunk_max_chars',
		type=int,
		default=None,
		help="Maximum diff characters per summarization request.",
	)
	parser.add_argument(
		'--llm-model', dest='llm_model',
		default=None,
		help="Chat model override (defaults from settings.yaml or MODEL_NAME).",
	)
	parser.add_argument(
		'--dry-run', dest='dry_run',
		action='store_true',
		help="Print the digest instead of posting it to the webhook.",
	)
	parser.add_argument(
		'--no-fetch', dest='fetch_before_collect',
		action='store_false',
		default=None,
		help="Skip 'git fetch --all' before collecting commits.",
	)
	args = parser.parse_args(argv)
	return args


#============================================
def build_overrides(args: argparse.Namespace) -> dict:
	"""
	Map CLI arguments onto DigestConfig field overrides.
	"""
	overrides = {
		"days_back": args.days_back,
		"repo_path": args.repo_path,
		"per_branch_limit": args.per_branch_limit,
		"chunk_max_chars": args.chunk_max_chars,
		"llm_model": args.llm_model,
		"fetch_before_collect": args.fetch_before_collect,
	}
	if args.dry_run:
		overrides["webhook_url"] = ""
	return overrides


#============================================
def main(argv=None) -> None:
	"""
	Run one digest end to end.
	"""
	args = parse_args(argv)
	env_path = dotenv.find_dotenv(usecwd=True)
	if env_path:
		dotenv.load_dotenv(env_path, override=False)
		log_step(f"Loaded environment file: {env_path}")
	else:
		log_step("No .env file found; using process environment")

	try:
		settings, settings_path = digest_settings.load_settings(args.settings)
		config = digest_settings.build_config(
			settings, environ=dict(os.environ), overrides=build_overrides(args),
		)
		digest_settings.validate_config(config)
	except digest_settings.ConfigError as error:
		CONSOLE.print(f"ERROR: {error}", style="bold red", markup=False)
		raise SystemExit(1) from error

	log_step(f"Using settings file: {settings_path}")
	log_step(f"Repository: {config.repo_label} at {os.path.abspath(config.repo_path)}")
	log_step(f"Days back: {config.days_back}, per-branch limit: {config.per_branch_limit}")
	log_step(f"Model: {config.llm_model}, chunk size: {config.chunk_max_chars} chars")

	client = chat_client.ChatClient.from_config(config)
	result = digest_pipeline.run_digest(config, client.generate, log_fn=log_step)
	if result.commit_count == 0:
		return
	if result.degraded_levels:
		log_step(f"WARNING: degraded summaries: {', '.join(result.degraded_levels)}")
	log_step(f"Summarized {result.commit_count} commit(s) in {client.call_count} LLM call(s).")
	if result.delivered:
		log_step("Daily digest posted.", style="green")
	else:
		log_step("Daily digest printed (no webhook configured).", style="green")


if __name__ == "__main__":
	main()
