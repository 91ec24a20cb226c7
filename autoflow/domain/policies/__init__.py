"""Input hygiene applied before user text reaches a prompt."""
from .sanitize import sanitize_user_text, sanitize_message
