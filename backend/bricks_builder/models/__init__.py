"""
Database models
"""
from bricks_builder.models.teaching import (BuildPhase, BuildSession,
                                            BuildSessionStatus, Lesson,
                                            LessonCategory, LessonScenario,
                                            LessonStatus)

__all__ = [
    "BuildPhase",
    "BuildSession",
    "BuildSessionStatus",
    "Lesson",
    "LessonCategory",
    "LessonScenario",
    "LessonStatus",
]
