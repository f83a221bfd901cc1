"""
Prompt-centric components
"""
from bricks_builder.components.prompt_repository import (
    ComponentPromptRepository, PromptNotFoundError,
    get_default_prompt_repository)

__all__ = [
    "ComponentPromptRepository",
    "PromptNotFoundError",
    "get_default_prompt_repository",
]
