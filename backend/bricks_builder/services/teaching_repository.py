"""
Persistence interface for lessons, scenarios and build sessions

TeachingRepository is what services depend on; SqlTeachingRepository is the
SQLAlchemy implementation.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bricks_builder.agents.structure_contracts import ReferenceScenario
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.models.teaching import (BuildSession, BuildSessionStatus,
                                            Lesson, LessonScenario)
from bricks_builder.services.teaching_schemas import (
    BuildSessionCreate, LessonCreate, LessonUpdate, ScenarioCreate,
    ScenarioUpdate, generate_build_session_id, generate_lesson_id,
    generate_scenario_id)

logger = LoggingConfig.get_logger(__name__)


class NotFoundError(LookupError):
    """Requested record does not exist"""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class TeachingRepository(ABC):
    """Create/read/update operations used by the build services"""

    @abstractmethod
    def create_lesson(self, data: LessonCreate) -> Lesson:
        pass

    @abstractmethod
    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        pass

    @abstractmethod
    def list_lessons(self) -> List[Lesson]:
        pass

    @abstractmethod
    def update_lesson(self, lesson_id: str, data: LessonUpdate) -> Lesson:
        pass

    @abstractmethod
    def create_scenario(self, data: ScenarioCreate) -> LessonScenario:
        pass

    @abstractmethod
    def get_scenario(self, scenario_id: str) -> Optional[LessonScenario]:
        pass

    @abstractmethod
    def list_scenarios(self, lesson_id: str) -> List[LessonScenario]:
        pass

    @abstractmethod
    def update_scenario(self, scenario_id: str, data: ScenarioUpdate) -> LessonScenario:
        pass

    @abstractmethod
    def create_build_session(self, data: BuildSessionCreate) -> BuildSession:
        pass

    @abstractmethod
    def get_build_session(self, session_id: str) -> Optional[BuildSession]:
        pass

    @abstractmethod
    def list_build_sessions(self) -> List[BuildSession]:
        pass

    @abstractmethod
    def update_build_session(self, session_id: str, **changes: Any) -> BuildSession:
        pass

    def reference_scenarios_for(self, session: BuildSession) -> List[ReferenceScenario]:
        """Few-shot examples for a session: its scenario, if it has an expected output"""
        if not session.scenario_id:
            return []
        scenario = self.get_scenario(session.scenario_id)
        if scenario is None or not scenario.expected_output:
            return []
        return [ReferenceScenario(name=scenario.name, expected_output=dict(scenario.expected_output))]


class SqlTeachingRepository(TeachingRepository):
    """TeachingRepository backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, instance: Any, action: str) -> Any:
        try:
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}", exc_info=True)
            raise
        return instance

    @staticmethod
    def _apply(instance: Any, changes: Dict[str, Any]) -> None:
        for field, value in changes.items():
            setattr(instance, field, value.value if isinstance(value, Enum) else value)

    # Lessons

    def create_lesson(self, data: LessonCreate) -> Lesson:
        lesson = Lesson(id=generate_lesson_id(), **data.model_dump(mode="json"))
        lesson = self._save(lesson, "create lesson")
        logger.info(f"Created lesson {lesson.id}", extra={"category": lesson.category})
        return lesson

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return self.db.get(Lesson, lesson_id)

    def list_lessons(self) -> List[Lesson]:
        return self.db.query(Lesson).order_by(Lesson.order_index, Lesson.created_at).all()

    def update_lesson(self, lesson_id: str, data: LessonUpdate) -> Lesson:
        lesson = self.get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError("Lesson", lesson_id)
        self._apply(lesson, data.model_dump(mode="json", exclude_unset=True))
        return self._save(lesson, f"update lesson {lesson_id}")

    # Scenarios

    def create_scenario(self, data: ScenarioCreate) -> LessonScenario:
        if self.get_lesson(data.lesson_id) is None:
            raise NotFoundError("Lesson", data.lesson_id)
        scenario = LessonScenario(id=generate_scenario_id(), **data.model_dump(mode="json"))
        scenario = self._save(scenario, "create scenario")
        logger.info(f"Created scenario {scenario.id} for lesson {scenario.lesson_id}")
        return scenario

    def get_scenario(self, scenario_id: str) -> Optional[LessonScenario]:
        return self.db.get(LessonScenario, scenario_id)

    def list_scenarios(self, lesson_id: str) -> List[LessonScenario]:
        return (
            self.db.query(LessonScenario)
            .filter(LessonScenario.lesson_id == lesson_id)
            .order_by(LessonScenario.created_at)
            .all()
        )

    def update_scenario(self, scenario_id: str, data: ScenarioUpdate) -> LessonScenario:
        scenario = self.get_scenario(scenario_id)
        if scenario is None:
            raise NotFoundError("Scenario", scenario_id)
        self._apply(scenario, data.model_dump(mode="json", exclude_unset=True))
        return self._save(scenario, f"update scenario {scenario_id}")

    # Build sessions

    def create_build_session(self, data: BuildSessionCreate) -> BuildSession:
        session = BuildSession(
            id=generate_build_session_id(),
            lesson_id=data.lesson_id,
            scenario_id=data.scenario_id,
            status=BuildSessionStatus.IN_PROGRESS.value,
            input_data=data.input_data.model_dump(exclude_none=True),
            agent_outputs={},
            review_notes=[],
            created_by=data.created_by,
        )
        session = self._save(session, "create build session")
        logger.info(f"Created build session {session.id}", extra={"scenario_id": session.scenario_id})
        return session

    def get_build_session(self, session_id: str) -> Optional[BuildSession]:
        return self.db.get(BuildSession, session_id)

    def list_build_sessions(self) -> List[BuildSession]:
        return self.db.query(BuildSession).order_by(BuildSession.created_at.desc()).all()

    def update_build_session(self, session_id: str, **changes: Any) -> BuildSession:
        session = self.get_build_session(session_id)
        if session is None:
            raise NotFoundError("BuildSession", session_id)
        self._apply(session, changes)
        return self._save(session, f"update build session {session_id}")
