from autoflow.runtime.repair import build_repair_prompt


def test_build_repair_prompt_contains_error() -> None:
    prompt = build_repair_prompt(
        original_prompt='PROMPT',
        invalid_output_text='{"foo": "bar"}',
        error_message='Invalid schema',
        attempt=0,
        max_retries=2,
    )
    assert 'Invalid schema' in prompt
    assert 'INVALID OUTPUT' in prompt
    assert 'repair attempt #1 of 2' in prompt
    assert prompt.endswith('PROMPT')
