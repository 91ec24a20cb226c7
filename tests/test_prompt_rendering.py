from autoflow.domain.prompt_store import FilesystemPromptStore
from autoflow.runtime.renderer import PromptRenderer
import pytest


def test_prompt_rendering_ok() -> None:
    template = 'Hello ${name}'
    renderer = PromptRenderer()
    rendered = renderer.render(template, {'name': 'Alice'})
    assert rendered == 'Hello Alice'


def test_prompt_rendering_missing_variable() -> None:
    renderer = PromptRenderer()
    with pytest.raises(ValueError):
        renderer.render('Hello ${name}', {})


def test_summary_template_has_every_placeholder_filled() -> None:
    template = FilesystemPromptStore().get_prompt(workflow='automation', module='summary', version='v1')
    rendered = PromptRenderer().render(
        template,
        {
            'automation_name': 'Payments',
            'status': 'Success',
            'duration': '3s',
            'succeeded_count': '1',
            'error_count': '0',
            'error_lines': '',
            'action_lines': '- slack.send_message executed',
        },
    )
    assert 'Automation: Payments' in rendered
    assert '${' not in rendered
