"""This module handles fetching prompt related artifacts from storage."""
from .prompt_store import PromptStore
from .file_system_prompt_store import FilesystemPromptStore, PACKAGE_PROMPTS_DIR
from .in_memory_prompt_store import InMemoryPromptStore
