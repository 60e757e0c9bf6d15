# Standard Library
import os
import re


_PROMPT_CACHE = {}
PROMPT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "prompts")
TOKEN_RE = re.compile(r"\{\{(\w+)\}\}")


#============================================
def load_prompt(prompt_name: str) -> str:
	"""
	Load a prompt template from digestlib/prompts/.
	"""
	if not prompt_name:
		raise ValueError("prompt_name is required")
	path = os.path.join(PROMPT_DIR, prompt_name)
	if path in _PROMPT_CACHE:
		return _PROMPT_CACHE[path]
	if not os.path.exists(path):
		raise FileNotFoundError(f"Prompt file not found: {path}")
	with open(path, "r", encoding="utf-8") as handle:
		text = handle.read()
	_PROMPT_CACHE[path] = text
	return text


#============================================
def render_prompt(template: str, values: dict[str, str]) -> str:
	"""
	Replace {{token}} placeholders with supplied values.

	Substitution is a single pass over the template, so a value that
	itself contains {{token}} text is inserted verbatim. Unknown tokens
	are left in place.
	"""
	if not template:
		return ""

	def _replace(match):
		key = match.group(1)
		if key not in values:
			return match.group(0)
		value = values[key]
		return value if value is not None else ""

	return TOKEN_RE.sub(_replace, template)


#============================================
def render_named_prompt(prompt_name: str, values: dict[str, str]) -> str:
	"""
	Load and render one prompt template in a single call.
	"""
	template = load_prompt(prompt_name)
	return render_prompt(template, values)
