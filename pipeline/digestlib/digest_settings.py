"""Settings loading and the run configuration for the commit digest.

Values resolve in order: CLI overrides, environment variables,
settings.yaml, built-in defaults. The resulting DigestConfig is built
once at the entry point and passed to every stage.
"""

# Standard Library
import copy
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

import yaml


DEFAULT_SETTINGS_PATH = "settings.yaml"

# environment variable name -> settings key path
ENV_OVERRIDES = {
	"OPENAI_API_KEY": ["llm", "api_key"],
	"OPENAI_BASE_URL": ["llm", "base_url"],
	"MODEL_NAME": ["llm", "model"],
	"LARK_WEBHOOK_URL": ["report", "webhook_url"],
	"REPO": ["repo", "slug"],
	"REPO_PATH": ["repo", "path"],
	"PER_BRANCH_LIMIT": ["window", "per_branch_limit"],
	"DAYS_BACK": ["window", "days_back"],
	"DIFF_CHUNK_MAX_CHARS": ["diff", "chunk_max_chars"],
}


#============================================
class ConfigError(RuntimeError):
	"""
	Raised when the run cannot start because of a configuration problem.
	"""


#============================================
@dataclass(frozen=True)
class DigestConfig:
	repo_slug: str = ""
	repo_path: str = "."
	server_url: str = "https://github.com"
	remote: str = "origin"
	fetch_before_collect: bool = True
	days_back: int = 1
	per_branch_limit: int = 200
	chunk_max_chars: int = 80000
	llm_base_url: str = "https://api.openai.com"
	llm_chat_path: str = "/v1/chat/completions"
	llm_api_key: str = ""
	llm_model: str = "gpt-4.1-mini"
	llm_temperature: float = 0.2
	llm_timeout_seconds: float = 0
	webhook_url: str = ""
	keyword: str = "[Daily Commit Digest]"
	timezone: str = "America/Los_Angeles"
	language: str = "English"

	@property
	def repo_label(self) -> str:
		return self.repo_slug or "repository"


#============================================
def get_repo_root() -> str:
	"""
	Return repository root based on this module location.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	repo_root = os.path.dirname(os.path.dirname(module_dir))
	return repo_root


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_root = get_repo_root()
	repo_candidate = os.path.join(repo_root, path_text)
	return os.path.abspath(repo_candidate)


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	if not os.path.isfile(resolved_path):
		return {}, resolved_path
	with open(resolved_path, "r", encoding="utf-8") as handle:
		text = handle.read()
	try:
		data = yaml.safe_load(text)
	except yaml.YAMLError as error:
		raise ConfigError(f"Malformed YAML in settings file {resolved_path}: {error}") from error
	if data is None:
		return {}, resolved_path
	if not isinstance(data, dict):
		raise ConfigError(f"Settings file must contain a mapping: {resolved_path}")
	return data, resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def set_nested_value(settings: dict, keys: list[str], value) -> None:
	"""
	Write a value at a nested key path, creating mappings as needed.
	"""
	current = settings
	for key in keys[:-1]:
		child = current.get(key)
		if not isinstance(child, dict):
			child = {}
			current[key] = child
		current = child
	current[keys[-1]] = value


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except ValueError as error:
		raise ConfigError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_float(settings: dict, keys: list[str], default_value: float) -> float:
	"""
	Read a float setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return float(value)
	except ValueError as error:
		raise ConfigError(f"Invalid number for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_bool(settings: dict, keys: list[str], default_value: bool) -> bool:
	"""
	Read a boolean setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in {"1", "true", "yes", "on"}:
			return True
		if text in {"0", "false", "no", "off"}:
			return False
		raise ConfigError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")
	if isinstance(value, int):
		return value != 0
	if value is None:
		return default_value
	raise ConfigError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")


#============================================
def apply_env_overrides(settings: dict, environ: dict) -> dict:
	"""
	Return a copy of settings with non-empty environment values applied.
	"""
	merged = copy.deepcopy(settings)
	for env_name, keys in ENV_OVERRIDES.items():
		value = (environ.get(env_name) or "").strip()
		if value:
			set_nested_value(merged, keys, value)
	return merged


#============================================
def build_config(settings: dict, environ: dict = None, overrides: dict = None) -> DigestConfig:
	"""
	Build the run configuration from settings, environment and CLI overrides.

	Args:
		settings: mapping loaded from settings.yaml.
		environ: environment mapping (os.environ at the entry point).
		overrides: DigestConfig field name -> value; None values are ignored.

	Returns:
		Frozen DigestConfig.
	"""
	merged = apply_env_overrides(settings, environ or {})
	defaults = DigestConfig()
	values = {
		"repo_slug": get_setting_str(merged, ["repo", "slug"], defaults.repo_slug),
		"repo_path": get_setting_str(merged, ["repo", "path"], defaults.repo_path) or ".",
		"server_url": get_setting_str(merged, ["repo", "server_url"], defaults.server_url).rstrip("/"),
		"remote": get_setting_str(merged, ["repo", "remote"], defaults.remote),
		"fetch_before_collect": get_setting_bool(
			merged, ["git", "fetch_before_collect"], defaults.fetch_before_collect,
		),
		"days_back": get_setting_int(merged, ["window", "days_back"], defaults.days_back),
		"per_branch_limit": get_setting_int(
			merged, ["window", "per_branch_limit"], defaults.per_branch_limit,
		),
		"chunk_max_chars": get_setting_int(
			merged, ["diff", "chunk_max_chars"], defaults.chunk_max_chars,
		),
		"llm_base_url": get_setting_str(merged, ["llm", "base_url"], defaults.llm_base_url),
		"llm_chat_path": get_setting_str(merged, ["llm", "chat_path"], defaults.llm_chat_path),
		"llm_api_key": get_setting_str(merged, ["llm", "api_key"], defaults.llm_api_key),
		"llm_model": get_setting_str(merged, ["llm", "model"], defaults.llm_model),
		"llm_temperature": get_setting_float(
			merged, ["llm", "temperature"], defaults.llm_temperature,
		),
		"llm_timeout_seconds": get_setting_float(
			merged, ["llm", "timeout_seconds"], defaults.llm_timeout_seconds,
		),
		"webhook_url": get_setting_str(merged, ["report", "webhook_url"], defaults.webhook_url),
		"keyword": get_setting_str(merged, ["report", "keyword"], defaults.keyword),
		"timezone": get_setting_str(merged, ["report", "timezone"], defaults.timezone),
		"language": get_setting_str(merged, ["report", "language"], defaults.language),
	}
	for field_name, value in (overrides or {}).items():
		if value is None:
			continue
		if field_name not in values:
			raise ConfigError(f"Unknown configuration override: {field_name}")
		values[field_name] = value
	return DigestConfig(**values)


#============================================
def validate_config(config: DigestConfig) -> None:
	"""
	Raise ConfigError for conditions that must stop the run before it starts.
	"""
	if not config.llm_api_key:
		raise ConfigError("Missing OPENAI_API_KEY (or llm.api_key in settings.yaml)")
	if config.days_back < 1:
		raise ConfigError(f"window.days_back must be >= 1; got {config.days_back}")
	if config.per_branch_limit < 1:
		raise ConfigError(f"window.per_branch_limit must be >= 1; got {config.per_branch_limit}")
	if config.chunk_max_chars < 1:
		raise ConfigError(f"diff.chunk_max_chars must be >= 1; got {config.chunk_max_chars}")
	if config.repo_path != ".":
		full_path = os.path.abspath(config.repo_path)
		if not os.path.exists(full_path):
			raise ConfigError(f"Repository path does not exist: {full_path}")
		# .git is a file in worktrees and submodules
		if not os.path.exists(os.path.join(full_path, ".git")):
			raise ConfigError(f"Repository path is not a git checkout: {full_path}")
	# the date label is computed after every LLM call, so check it up front
	try:
		ZoneInfo(config.timezone)
	except (ZoneInfoNotFoundError, ValueError) as error:
		raise ConfigError(f"Unknown report.timezone: {config.timezone!r}") from error
