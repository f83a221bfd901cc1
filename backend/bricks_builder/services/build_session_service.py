"""
Service for running agents over build sessions
"""
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from bricks_builder.agents.constants import AUTO_REVIEW_THRESHOLD
from bricks_builder.agents.contracts import AgentOutput
from bricks_builder.agents.structure_agent import StructureAgent
from bricks_builder.agents.structure_contracts import StructureAgentInput
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.rate_limit import (RATE_LIMITS, RateLimiter,
                                            RateLimitExceeded)
from bricks_builder.core.resources import AppResources
from bricks_builder.models.teaching import BuildSession, BuildSessionStatus
from bricks_builder.services.teaching_repository import (NotFoundError,
                                                         SqlTeachingRepository,
                                                         TeachingRepository)
from bricks_builder.services.teaching_schemas import BuildSessionCreate

logger = LoggingConfig.get_logger(__name__)

STRUCTURE_OUTPUT_KEY = "structure"


def derive_status(confidence: float) -> BuildSessionStatus:
    """Status a session moves to after a successful structure run"""
    if confidence >= AUTO_REVIEW_THRESHOLD:
        return BuildSessionStatus.REVIEW
    return BuildSessionStatus.IN_PROGRESS


class BuildExecutionResult(BaseModel):
    session: Dict[str, Any]
    # Envelope whose data is a StructureAgentOutput on success
    agent_output: AgentOutput
    status: BuildSessionStatus
    status_changed: bool


class BuildSessionService:
    """Create build sessions, run the structure agent on them and review the result"""

    def __init__(
        self,
        db: Session,
        resources: Optional[AppResources] = None,
        agent: Optional[StructureAgent] = None,
        repository: Optional[TeachingRepository] = None,
        rate_limiter: Optional[RateLimiter] = None
    ):
        self.db = db
        self.repository = repository or SqlTeachingRepository(db)
        if rate_limiter is None and resources is not None:
            rate_limiter = resources.rate_limiter
        self.rate_limiter = rate_limiter
        if agent is None:
            agent = StructureAgent(text_generator=resources.text_generator if resources else None)
        self.agent = agent

    def create_session(self, data: BuildSessionCreate) -> BuildSession:
        return self.repository.create_build_session(data)

    def get_session(self, session_id: str) -> BuildSession:
        session = self.repository.get_build_session(session_id)
        if session is None:
            raise NotFoundError("BuildSession", session_id)
        return session

    def list_sessions(self, status: Optional[BuildSessionStatus] = None) -> List[BuildSession]:
        """All sessions, newest first, optionally filtered by status"""
        sessions = self.repository.list_build_sessions()
        if status is not None:
            sessions = [s for s in sessions if s.status == status.value]
        return sessions

    def _check_rate_limit(self, requester: str) -> None:
        if self.rate_limiter is None:
            return
        identifier = f"build:{requester}"
        result = self.rate_limiter.check(identifier, RATE_LIMITS["default"])
        if not result.success:
            raise RateLimitExceeded(identifier, result)

    async def execute_session(self, session_id: str, requester: str = "unknown") -> BuildExecutionResult:
        """
        Run the structure agent on a build session and store its envelope

        Args:
            session_id: Build session ID
            requester: Identifier used for rate limiting

        Returns:
            BuildExecutionResult with the updated session

        Raises:
            RateLimitExceeded: Too many executions for this requester
            NotFoundError: Session does not exist
            ValueError: Session is already approved
        """
        self._check_rate_limit(requester)

        session = self.get_session(session_id)
        if session.status == BuildSessionStatus.APPROVED.value:
            raise ValueError(f"Build session {session_id} is already approved")

        references = self.repository.reference_scenarios_for(session)
        agent_input = StructureAgentInput.model_validate(
            {**dict(session.input_data or {}), "reference_scenarios": references}
        )

        output = await self.agent.run(agent_input)

        previous_status = BuildSessionStatus(session.status)
        # A failed run carries no confidence worth acting on
        new_status = derive_status(output.confidence) if output.success else previous_status

        agent_outputs = dict(session.agent_outputs or {})
        agent_outputs[STRUCTURE_OUTPUT_KEY] = output.model_dump(mode="json")
        updated = self.repository.update_build_session(
            session_id,
            agent_outputs=agent_outputs,
            status=new_status,
        )

        logger.info(
            f"Executed structure agent for build session {session_id}",
            extra={
                "success": output.success,
                "confidence": output.confidence,
                "status": new_status.value,
                "reference_scenarios": len(references),
            }
        )

        return BuildExecutionResult(
            session=updated.to_dict(),
            agent_output=output,
            status=new_status,
            status_changed=new_status != previous_status,
        )

    def add_review_note(self, session_id: str, note: str) -> BuildSession:
        note = note.strip()
        if not note:
            raise ValueError("Review note cannot be empty")
        session = self.get_session(session_id)
        notes = list(session.review_notes or [])
        notes.append({"note": note, "timestamp": int(time.time() * 1000)})
        return self.repository.update_build_session(session_id, review_notes=notes)

    def approve_session(
        self,
        session_id: str,
        final_output: Optional[Dict[str, Any]] = None
    ) -> BuildSession:
        """
        Approve a session that is in review

        Without an explicit final_output the structure from the last
        successful agent run is used.
        """
        session = self.get_session(session_id)
        if session.status != BuildSessionStatus.REVIEW.value:
            raise ValueError(
                f"Build session {session_id} cannot be approved from status '{session.status}'"
            )

        if final_output is None:
            structure_output = (session.agent_outputs or {}).get(STRUCTURE_OUTPUT_KEY) or {}
            final_output = (structure_output.get("data") or {}).get("structure")

        approved = self.repository.update_build_session(
            session_id,
            status=BuildSessionStatus.APPROVED,
            final_output=final_output,
        )
        logger.info(f"Approved build session {session_id}")
        return approved
