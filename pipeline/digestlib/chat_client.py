"""
OpenAI-compatible chat completion client used for every summary call.
"""

# Standard Library
import re

import requests


# zero-width characters that sneak into copied URLs
_INVISIBLE_RE = re.compile("[\u200b-\u200d\ufeff]")


#============================================
class ChatError(RuntimeError):
	"""
	Raised when the chat endpoint fails or returns a non-2xx status.
	"""


#============================================
def clean_base_url(base_url: str) -> str:
	"""
	Strip invisible characters, whitespace and trailing slashes.
	"""
	return _INVISIBLE_RE.sub("", base_url or "").strip().rstrip("/")


#============================================
def extract_message_content(payload) -> str:
	"""
	Read choices[0].message.content from a response body, or "".
	"""
	if not isinstance(payload, dict):
		return ""
	choices = payload.get("choices")
	if not isinstance(choices, list) or not choices:
		return ""
	first = choices[0]
	if not isinstance(first, dict):
		return ""
	message = first.get("message") or {}
	content = message.get("content") if isinstance(message, dict) else None
	if not isinstance(content, str):
		return ""
	return content.strip()


#============================================
class ChatClient:
	"""
	Non-streaming chat client; one user message per request.
	"""

	def __init__(
		self,
		base_url: str,
		api_key: str,
		model: str,
		chat_path: str = "/v1/chat/completions",
		temperature: float = 0.2,
		timeout_seconds: float = 0,
		session=None,
	) -> None:
		self.base_url = clean_base_url(base_url)
		self.api_key = api_key
		self.model = model
		self.chat_path = "/" + chat_path.lstrip("/")
		self.temperature = temperature
		# zero means wait indefinitely
		self.timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None
		self.session = session if session is not None else requests.Session()
		self.call_count = 0

	@classmethod
	def from_config(cls, config) -> "ChatClient":
		return cls(
			base_url=config.llm_base_url,
			api_key=config.llm_api_key,
			model=config.llm_model,
			chat_path=config.llm_chat_path,
			temperature=config.llm_temperature,
			timeout_seconds=config.llm_timeout_seconds,
		)

	@property
	def endpoint(self) -> str:
		return self.base_url + self.chat_path

	def build_payload(self, prompt: str) -> dict:
		return {
			"model": self.model,
			"messages": [{"role": "user", "content": prompt}],
			"temperature": self.temperature,
			# DashScope compatible mode rejects thinking on non-streaming calls
			"enable_thinking": False,
			"stream": False,
		}

	def generate(self, prompt: str, purpose: str = "") -> str:
		"""
		Send one prompt and return the stripped reply text.

		Args:
			prompt: full user message text.
			purpose: short label used in error messages.

		Returns:
			Generated text; "" when the reply carries no content.
		"""
		self.call_count += 1
		headers = {
			"Content-Type": "application/json",
			"Authorization": f"Bearer {self.api_key}",
		}
		label = purpose or "chat"
		try:
			response = self.session.post(
				self.endpoint,
				json=self.build_payload(prompt),
				headers=headers,
				timeout=self.timeout,
			)
		except requests.RequestException as error:
			raise ChatError(f"{label}: request failed: {error}") from error
		if response.status_code < 200 or response.status_code >= 300:
			raise ChatError(f"{label}: HTTP {response.status_code}: {response.text}")
		try:
			payload = response.json()
		except ValueError as error:
			raise ChatError(f"{label}: invalid JSON response") from error
		return extract_message_content(payload)
