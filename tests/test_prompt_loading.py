from pathlib import Path

import pytest

from autoflow.domain.prompt_store import FilesystemPromptStore, InMemoryPromptStore
from autoflow.domain.prompt_store.file_system_prompt_store import PromptNotFoundError


@pytest.mark.parametrize('module', ['plan', 'analyze', 'api_key_help', 'summary'])
def test_packaged_prompts_exist(module: str) -> None:
    content = FilesystemPromptStore().get_prompt(workflow='automation', module=module, version='v1')
    assert content.strip()


def test_plan_prompt_demands_json() -> None:
    content = FilesystemPromptStore().get_prompt(workflow='automation', module='plan', version='v1')
    assert 'ONLY valid JSON' in content


def test_load_prompt_missing() -> None:
    with pytest.raises(PromptNotFoundError):
        FilesystemPromptStore().get_prompt(workflow='automation', module='does-not-exist', version='v1')


def test_custom_base_dir(tmp_path: Path) -> None:
    prompt_dir = tmp_path / 'prompts' / 'automation' / 'plan' / 'v2'
    prompt_dir.mkdir(parents=True)
    (prompt_dir / 'prompt.md').write_text('custom planner', encoding='utf-8')

    store = FilesystemPromptStore(base_dir=tmp_path)
    assert store.get_prompt(workflow='automation', module='plan', version='v2') == 'custom planner'


def test_in_memory_store() -> None:
    store = InMemoryPromptStore({('automation', 'plan', 'v1'): 'mock prompt'})
    assert store.get_prompt(workflow='automation', module='plan', version='v1') == 'mock prompt'
