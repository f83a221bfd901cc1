"""
Teaching system models: lessons, their scenarios and build sessions
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import relationship

from bricks_builder.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class LessonCategory(str, Enum):
    CONTAINER_GRIDS = "container-grids"
    MEDIA_QUERIES = "media-queries"
    PLUGIN_RESOURCES = "plugin-resources"
    ACSS_DOCS = "acss-docs"


class LessonStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class BuildPhase(str, Enum):
    JAVASCRIPT = "javascript"
    CSS = "css"
    TESTING = "testing"
    OUTPUT = "output"


class BuildSessionStatus(str, Enum):
    """Build session status enumeration"""
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    APPROVED = "approved"


class Lesson(Base):
    """A lesson groups the scenarios used to teach the agents"""
    __tablename__ = "lessons"

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    # Stored as plain strings to keep the values readable in the database
    category = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=LessonStatus.DRAFT.value)
    order_index = Column(Integer, nullable=False, default=0)
    created_by = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    scenarios = relationship(
        "LessonScenario",
        back_populates="lesson",
        cascade="all, delete-orphan",
        order_by="LessonScenario.created_at"
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "status": self.status,
            "order_index": self.order_index,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title}, category={self.category}, status={self.status})>"


class LessonScenario(Base):
    """A worked example: inputs plus the correct Bricks output"""
    __tablename__ = "lesson_scenarios"

    id = Column(String(64), primary_key=True)
    lesson_id = Column(String(64), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    acss_js_dump = Column(MutableDict.as_mutable(JSON), nullable=True)
    screenshot_before_url = Column(Text, nullable=True)
    screenshot_after_url = Column(Text, nullable=True)
    correct_container_grid_code = Column(Text, nullable=True)
    css_handling_rules = Column(MutableDict.as_mutable(JSON), nullable=True)
    validation_rules = Column(MutableDict.as_mutable(JSON), nullable=True)
    # Used as a few-shot reference example by the structure agent
    expected_output = Column(MutableDict.as_mutable(JSON), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    lesson = relationship("Lesson", back_populates="scenarios")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lesson_id": self.lesson_id,
            "name": self.name,
            "acss_js_dump": self.acss_js_dump,
            "screenshot_before_url": self.screenshot_before_url,
            "screenshot_after_url": self.screenshot_after_url,
            "correct_container_grid_code": self.correct_container_grid_code,
            "css_handling_rules": self.css_handling_rules,
            "validation_rules": self.validation_rules,
            "expected_output": self.expected_output,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<LessonScenario(id={self.id}, lesson_id={self.lesson_id}, name={self.name})>"


class BuildSession(Base):
    """One run of the agents over a set of inputs, with its review trail"""
    __tablename__ = "build_sessions"

    id = Column(String(64), primary_key=True)
    lesson_id = Column(String(64), ForeignKey("lessons.id", ondelete="SET NULL"), nullable=True, index=True)
    scenario_id = Column(String(64), ForeignKey("lesson_scenarios.id", ondelete="SET NULL"), nullable=True)

    phase = Column(String(20), nullable=False, default=BuildPhase.JAVASCRIPT.value)
    status = Column(String(20), nullable=False, default=BuildSessionStatus.IN_PROGRESS.value, index=True)

    input_data = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    # Agent envelopes keyed by agent ("structure", ...)
    agent_outputs = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    review_notes = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    final_output = Column(MutableDict.as_mutable(JSON), nullable=True)
    created_by = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    scenario = relationship("LessonScenario")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lesson_id": self.lesson_id,
            "scenario_id": self.scenario_id,
            "phase": self.phase,
            "status": self.status,
            "input_data": dict(self.input_data or {}),
            "agent_outputs": dict(self.agent_outputs or {}),
            "review_notes": list(self.review_notes or []),
            "final_output": self.final_output,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<BuildSession(id={self.id}, status={self.status}, phase={self.phase})>"
