"""
Services for the Bricks Builder teaching system
"""
from bricks_builder.services.build_session_service import (
    BuildExecutionResult, BuildSessionService, derive_status)
from bricks_builder.services.teaching_repository import (NotFoundError,
                                                         SqlTeachingRepository,
                                                         TeachingRepository)

__all__ = [
    "BuildExecutionResult",
    "BuildSessionService",
    "NotFoundError",
    "SqlTeachingRepository",
    "TeachingRepository",
    "derive_status",
]
