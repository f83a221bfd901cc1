"""
Request schemas and id generation for the teaching system
"""
import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bricks_builder.models.teaching import LessonCategory, LessonStatus


def _generate_id(prefix: str) -> str:
    # 12 random bytes -> 16 url-safe characters
    return f"{prefix}_{secrets.token_urlsafe(12)}"


def generate_lesson_id() -> str:
    return _generate_id("lesson")


def generate_scenario_id() -> str:
    return _generate_id("scenario")


def generate_build_session_id() -> str:
    return _generate_id("session")


class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: LessonCategory
    status: LessonStatus = LessonStatus.DRAFT
    order_index: int = 0
    created_by: str = "admin"


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[LessonCategory] = None
    status: Optional[LessonStatus] = None
    order_index: Optional[int] = None


class ScenarioCreate(BaseModel):
    lesson_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    acss_js_dump: Optional[Dict[str, Any]] = None
    screenshot_before_url: Optional[str] = None
    screenshot_after_url: Optional[str] = None
    correct_container_grid_code: Optional[str] = None
    css_handling_rules: Optional[Dict[str, Any]] = None
    validation_rules: Optional[Dict[str, Any]] = None
    expected_output: Optional[Dict[str, Any]] = None

    @field_validator("screenshot_before_url", "screenshot_after_url")
    @classmethod
    def validate_url(cls, v):
        """Screenshots must be absolute http(s) URLs"""
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be an absolute http(s) URL")
        return v


class ScenarioUpdate(ScenarioCreate):
    lesson_id: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)


class BuildSessionInput(BaseModel):
    """Inputs the agents run on"""
    description: Optional[str] = None
    acss_js_dump: Optional[Dict[str, Any]] = None
    container_grid_code: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class BuildSessionCreate(BaseModel):
    lesson_id: Optional[str] = None
    scenario_id: Optional[str] = None
    input_data: BuildSessionInput = Field(default_factory=BuildSessionInput)
    created_by: str = "admin"
