"""Tests for pipeline/digestlib/chat_client.py."""

# Standard Library
import os
import sys

import pytest
import requests

# add pipeline directory to path for digestlib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from digestlib import chat_client
from digestlib import digest_settings


#============================================
class FakeResponse:
	def __init__(self, status_code: int, payload=None, text: str = ""):
		self.status_code = status_code
		self._payload = payload
		self.text = text

	def json(self):
		if self._payload is None:
			raise ValueError("no json")
		return self._payload


#============================================
class FakeSession:
	def __init__(self, response=None, error=None):
		self.response = response
		self.error = error
		self.requests = []

	def post(self, url, json=None, headers=None, timeout=None):
		self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
		if self.error is not None:
			raise self.error
		return self.response


#============================================
def _client(session, **kwargs) -> chat_client.ChatClient:
	return chat_client.ChatClient(
		base_url="https://dashscope.example.com/",
		api_key="secret",
		model="qwen-plus",
		session=session,
		**kwargs,
	)


#============================================
def test_generate_sends_single_user_message():
	"""The request carries one user message and the non-streaming flags."""
	payload = {"choices": [{"message": {"content": "  summary text \n"}}]}
	session = FakeSession(FakeResponse(200, payload))
	client = _client(session)
	assert client.generate("hello", "unit test") == "summary text"
	sent = session.requests[0]
	assert sent["url"] == "https://dashscope.example.com/v1/chat/completions"
	assert sent["headers"]["Authorization"] == "Bearer secret"
	assert sent["json"] == {
		"model": "qwen-plus",
		"messages": [{"role": "user", "content": "hello"}],
		"temperature": 0.2,
		"enable_thinking": False,
		"stream": False,
	}
	# no timeout unless configured
	assert sent["timeout"] is None
	assert client.call_count == 1


#============================================
def test_generate_non_2xx_raises():
	"""Any status outside 2xx fails the call."""
	session = FakeSession(FakeResponse(429, text="rate limited"))
	with pytest.raises(chat_client.ChatError, match="HTTP 429"):
		_client(session).generate("hello", "unit test")


#============================================
def test_generate_transport_error_raises_chat_error():
	"""Connection problems surface as ChatError."""
	session = FakeSession(error=requests.ConnectionError("refused"))
	with pytest.raises(chat_client.ChatError):
		_client(session).generate("hello")


#============================================
def test_generate_missing_content_returns_empty():
	"""A reply without choices reads as empty text."""
	session = FakeSession(FakeResponse(200, {"choices": []}))
	assert _client(session).generate("hello") == ""


#============================================
def test_clean_base_url_strips_invisible_characters():
	"""Zero-width characters copied with the URL are removed."""
	assert chat_client.clean_base_url("\u200bhttps://api.example.com/\ufeff ") == "https://api.example.com"


#============================================
def test_from_config_timeout():
	"""A positive timeout from settings is passed through."""
	config = digest_settings.DigestConfig(llm_api_key="k", llm_timeout_seconds=45)
	client = chat_client.ChatClient.from_config(config)
	assert client.timeout == 45
	assert client.model == "gpt-4.1-mini"
	assert client.endpoint.startswith("https://api.openai.com/")


#============================================
def test_default_endpoint_is_openai_chat_completions():
	"""Out-of-the-box settings point at the standard OpenAI route."""
	client = chat_client.ChatClient.from_config(digest_settings.DigestConfig(llm_api_key="k"))
	assert client.endpoint == "https://api.openai.com/v1/chat/completions"

	dashscope = chat_client.ChatClient.from_config(digest_settings.DigestConfig(
		llm_api_key="k",
		llm_base_url="https://dashscope.aliyuncs.com",
		llm_chat_path="/compatible-mode/v1/chat/completions",
	))
	assert dashscope.endpoint == "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
