from typing import Protocol


class PromptStore(Protocol):
    def get_prompt(self, *, workflow: str, module: str, version: str) -> str:
        ...
