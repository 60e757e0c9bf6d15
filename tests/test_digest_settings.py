"""Tests for pipeline/digestlib/digest_settings.py."""

# Standard Library
import os
import sys

import pytest

# add pipeline directory to path for digestlib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from digestlib import digest_settings


#============================================
def test_load_settings_missing_file(tmp_path) -> None:
	"""
	Missing settings file should return empty settings.
	"""
	settings, resolved_path = digest_settings.load_settings(str(tmp_path / "missing.yaml"))
	assert settings == {}
	assert resolved_path.endswith("missing.yaml")


#============================================
def test_load_settings_reads_yaml(tmp_path) -> None:
	"""
	YAML settings should be parsed into nested mapping values.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text(
		"repo:\n"
		"  slug: acme/widgets\n"
		"window:\n"
		"  per_branch_limit: 50\n",
		encoding="utf-8",
	)
	settings, _ = digest_settings.load_settings(str(settings_path))
	assert digest_settings.get_setting_str(settings, ["repo", "slug"], "") == "acme/widgets"
	assert digest_settings.get_setting_int(settings, ["window", "per_branch_limit"], 200) == 50


#============================================
def test_load_settings_rejects_non_mapping(tmp_path) -> None:
	"""
	A YAML list at the top level is a configuration error.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text("- a\n- b\n", encoding="utf-8")
	with pytest.raises(digest_settings.ConfigError):
		digest_settings.load_settings(str(settings_path))


#============================================
def test_get_setting_int_invalid_value_raises() -> None:
	"""
	Invalid integer setting should raise ConfigError.
	"""
	settings = {"diff": {"chunk_max_chars": "abc"}}
	with pytest.raises(digest_settings.ConfigError):
		digest_settings.get_setting_int(settings, ["diff", "chunk_max_chars"], 80000)


#============================================
def test_get_setting_bool_strings() -> None:
	"""
	Boolean settings accept common yes/no spellings.
	"""
	assert digest_settings.get_setting_bool({"git": {"fetch": "off"}}, ["git", "fetch"], True) is False
	assert digest_settings.get_setting_bool({"git": {"fetch": "yes"}}, ["git", "fetch"], False) is True
	with pytest.raises(digest_settings.ConfigError):
		digest_settings.get_setting_bool({"git": {"fetch": "maybe"}}, ["git", "fetch"], False)


#============================================
def test_build_config_defaults() -> None:
	"""
	Empty settings and environment give the built-in defaults.
	"""
	config = digest_settings.build_config({}, environ={})
	assert config == digest_settings.DigestConfig()
	assert config.per_branch_limit == 200
	assert config.chunk_max_chars == 80000
	assert config.repo_label == "repository"


#============================================
def test_build_config_precedence() -> None:
	"""
	CLI overrides beat environment, which beats settings.yaml.
	"""
	settings = {
		"llm": {"model": "from-yaml", "api_key": "yaml-key"},
		"window": {"days_back": 3, "per_branch_limit": 10},
	}
	environ = {"MODEL_NAME": "from-env", "DAYS_BACK": "5", "OPENAI_API_KEY": ""}
	config = digest_settings.build_config(
		settings, environ=environ, overrides={"days_back": 7, "repo_path": None},
	)
	assert config.llm_model == "from-env"
	assert config.days_back == 7
	assert config.per_branch_limit == 10
	# empty environment values do not clobber settings
	assert config.llm_api_key == "yaml-key"
	assert config.repo_path == "."
	# the input mapping is left untouched
	assert settings["llm"]["model"] == "from-yaml"


#============================================
def test_build_config_unknown_override_raises() -> None:
	"""
	Overrides must name DigestConfig fields.
	"""
	with pytest.raises(digest_settings.ConfigError):
		digest_settings.build_config({}, environ={}, overrides={"nope": 1})


#============================================
def test_validate_config_requires_api_key() -> None:
	"""
	A missing API key stops the run.
	"""
	with pytest.raises(digest_settings.ConfigError, match="OPENAI_API_KEY"):
		digest_settings.validate_config(digest_settings.DigestConfig())


#============================================
def test_validate_config_repo_path(tmp_path) -> None:
	"""
	A configured repo path must exist and be a git checkout.
	"""
	missing = digest_settings.DigestConfig(llm_api_key="k", repo_path=str(tmp_path / "nope"))
	with pytest.raises(digest_settings.ConfigError, match="does not exist"):
		digest_settings.validate_config(missing)

	not_git = digest_settings.DigestConfig(llm_api_key="k", repo_path=str(tmp_path))
	with pytest.raises(digest_settings.ConfigError, match="not a git checkout"):
		digest_settings.validate_config(not_git)

	(tmp_path / ".git").mkdir()
	digest_settings.validate_config(not_git)


#============================================
def test_validate_config_rejects_bad_numbers() -> None:
	"""
	Window, cap and chunk size must be positive.
	"""
	for field_name in ("days_back", "per_branch_limit", "chunk_max_chars"):
		config = digest_settings.DigestConfig(llm_api_key="k", **{field_name: 0})
		with pytest.raises(digest_settings.ConfigError):
			digest_settings.validate_config(config)


#============================================
def test_load_settings_malformed_yaml_raises_config_error(tmp_path) -> None:
	"""
	Broken YAML should surface as ConfigError, not a parser traceback.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text("repo: [unclosed\n", encoding="utf-8")
	with pytest.raises(digest_settings.ConfigError, match="Malformed YAML"):
		digest_settings.load_settings(str(settings_path))


#============================================
def test_validate_config_rejects_unknown_timezone() -> None:
	"""
	An unknown report timezone stops the run before any work.
	"""
	config = digest_settings.DigestConfig(llm_api_key="k", timezone="Mars/Olympus")
	with pytest.raises(digest_settings.ConfigError, match="report.timezone"):
		digest_settings.validate_config(config)
	for name in ("Asia/Shanghai", "UTC"):
		digest_settings.validate_config(digest_settings.DigestConfig(llm_api_key="k", timezone=name))


#============================================
def test_apply_env_overrides_leaves_settings_untouched() -> None:
	"""
	Environment overrides work on a deep copy of the settings mapping.
	"""
	settings = {"llm": {"model": "m", "extra": {"tags": ["a"]}}}
	merged = digest_settings.apply_env_overrides(settings, {"MODEL_NAME": "other"})
	assert merged["llm"]["model"] == "other"
	assert settings["llm"]["model"] == "m"
	merged["llm"]["extra"]["tags"].append("b")
	assert settings["llm"]["extra"]["tags"] == ["a"]
