"""Sanitization of user text.

Core principles:
- Enforce size limits (avoid prompt stuffing)
- Reject/contain suspicious instructions inside user data
"""

from __future__ import annotations

import re

_INJECTION_PATTERNS = [
    r'(?i)\bignore\b.*\binstructions\b',
    r'(?i)\bdisregard\b.*\bsystem\b',
    r'(?i)\byou are now\b',
    r'(?i)\bact as\b.*\bsystem\b',
    r'(?i)\breveal\b.*\bprompt\b',
    r'(?i)\bexfiltrate\b',
]

_MAX_USER_CHARS = 4000
_MAX_MESSAGE_CHARS = 2000

REDACTION_MARKER = '[POTENTIALLY_MALICIOUS_INSTRUCTION_REMOVED]'


def sanitize_user_text(user_text: str) -> str:
    """Sanitize and bound user text before inserting into prompts."""
    text = user_text.strip()
    if len(text) > _MAX_USER_CHARS:
        text = text[:_MAX_USER_CHARS] + '…'

    for pat in _INJECTION_PATTERNS:
        if re.search(pat, text):
            text = re.sub(pat, REDACTION_MARKER, text)

    return text


def sanitize_message(text: str) -> str:
    """Bound free-form text such as execution log lines fed to the summarizer."""
    t = text.strip()
    if len(t) > _MAX_MESSAGE_CHARS:
        t = t[:_MAX_MESSAGE_CHARS] + '…'
    return t
