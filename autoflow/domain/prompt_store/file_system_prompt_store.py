from pathlib import Path

PACKAGE_PROMPTS_DIR = Path(__file__).resolve().parents[2]


class PromptNotFoundError(RuntimeError):
    pass


class FilesystemPromptStore:
    """
    PromptStore backed by a local filesystem.

    Expected layout:
        prompts/
          <workflow>/
            <module>/
              <version>/
                prompt.md
    """

    def __init__(self, *, base_dir: Path = PACKAGE_PROMPTS_DIR) -> None:
        self._base_dir = base_dir

    def _base_path(self, workflow: str, module: str, version: str) -> Path:
        return self._base_dir / "prompts" / workflow / module / version

    def get_prompt(self, *, workflow: str, module: str, version: str) -> str:
        path = self._base_path(workflow, module, version) / "prompt.md"
        if not path.exists():
            raise PromptNotFoundError(f"Prompt not found: {workflow}/{module}/{version}")
        return path.read_text(encoding="utf-8")
