class InMemoryPromptStore:
    def __init__(self, prompts: dict[tuple[str, str, str], str]):
        self._prompts = prompts

    def get_prompt(self, *, workflow: str, module: str, version: str) -> str:
        return self._prompts[(workflow, module, version)]
