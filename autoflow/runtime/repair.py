"""Repair prompt builder.

A repair prompt is used when the planner output fails validation (invalid JSON,
missing fields, etc.). The repair prompt should include:
- the validation error
- the invalid output
- the original request
"""

from __future__ import annotations


def build_repair_prompt(
    original_prompt: str,
    invalid_output_text: str,
    error_message: str,
    attempt: int,
    max_retries: int,
) -> str:
    """Construct a repair prompt to fix invalid model output.

    Args:
        original_prompt: The original rendered prompt.
        invalid_output_text: The model's invalid output (raw text).
        error_message: Validation error details.
        attempt: Zero-based repair attempt.
        max_retries: The maximum number of repair attempts.

    Returns:
        A new prompt instructing the model to repair output into the required JSON shape.
    """
    return f"""
You previously produced an invalid automation plan.

ERROR:
{error_message}

INVALID OUTPUT (RAW TEXT):
{invalid_output_text}

ATTEMPTS:
This is repair attempt #{attempt + 1} of {max_retries}.

INSTRUCTIONS:
- Return ONLY ONE valid JSON object with keys: "name", "description", "trigger", "trigger_config", "actions"
- Every action needs "service", "action" and "config"
- Do not include prose or markdown fences
- Do NOT change the intent of the automation unless required to fix the error.

ORIGINAL REQUEST:
{original_prompt}
""".strip()
