"""Deliver the finished digest to a chat webhook, or the console for dry runs."""

import requests
import rich.console


#============================================
def format_report(daily_text: str, keyword: str) -> str:
	"""
	Prefix the digest with the notification keyword.

	Keyword-secured bots drop messages that lack their keyword.
	"""
	if not keyword:
		return daily_text
	return f"{keyword}\n\n{daily_text}"


#============================================
def build_webhook_payload(text: str) -> dict:
	"""
	Build the text message body accepted by the webhook.
	"""
	return {"msg_type": "text", "content": {"text": text}}


#============================================
def post_json(url: str, payload: dict) -> None:
	"""
	POST a JSON body and wait for the response; the body is ignored.
	"""
	response = requests.post(url, json=payload, headers={"Content-Type": "application/json"})
	response.close()


#============================================
def print_report(text: str, console=None, heading: str = None) -> None:
	"""
	Print the digest to the operator console.
	"""
	if console is None:
		console = rich.console.Console()
	if heading is None:
		heading = "Webhook URL not configured; final digest text follows:"
	console.print(heading + "\n", style="yellow")
	# plain text, no markup parsing of model output
	console.print(text, markup=False, highlight=False)


#============================================
def deliver_report(text: str, webhook_url: str, log_fn=None, post_fn=None, console=None) -> bool:
	"""
	Send the digest to the webhook, or print it when no webhook is set.

	The text is echoed to the console before posting as well, so the run
	output holds the digest even when the webhook drops the message.

	Args:
		text: final digest text.
		webhook_url: target webhook; empty means console output.
		log_fn: optional callable for progress logging.
		post_fn: callable(url, payload) used for delivery; defaults to post_json.
		console: rich Console used for the digest output.

	Returns:
		True when the digest was posted to the webhook.
	"""
	if not webhook_url:
		print_report(text, console=console)
		return False
	print_report(text, console=console, heading="Final digest text, posting to webhook:")
	if post_fn is None:
		post_fn = post_json
	post_fn(webhook_url, build_webhook_payload(text))
	if log_fn:
		log_fn("Digest delivered to webhook")
	return True
