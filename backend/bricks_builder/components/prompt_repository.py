"""
File-backed prompt repository.

System prompts live on disk as `<component>.system` files so they can be
reviewed and edited without touching agent code.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

DEFAULT_PROMPTS_ROOT = Path(__file__).resolve().parents[1] / "prompts" / "components"


class PromptNotFoundError(LookupError):
    pass


class ComponentPromptRepository:
    def __init__(self, prompts_root: Optional[Path] = None):
        # Default: <package>/prompts/components, shipped as package data
        self.prompts_root = Path(prompts_root) if prompts_root is not None else DEFAULT_PROMPTS_ROOT

    def get_system_prompt(self, component_name: str) -> str:
        path = self.prompts_root / f"{component_name}.system"
        if not path.is_file():
            raise PromptNotFoundError(f"No system prompt for '{component_name}' in {self.prompts_root}")
        return path.read_text(encoding="utf-8").strip()


@lru_cache()
def get_default_prompt_repository() -> ComponentPromptRepository:
    return ComponentPromptRepository()
