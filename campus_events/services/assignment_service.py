"""
Assignment of students to events.

An event targets either every active student (``target_promotions`` is
None), nobody (``[]``), or the students of the listed promotions. The
service turns that descriptor into student identities through the profile
service and records one ``event_student`` row per (event, student).
"""
import asyncio
import uuid
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.clients.profile_client import ProfileServiceClient
from campus_events.core.config import settings
from campus_events.core.errors import UpstreamFailure
from campus_events.core.logging import logger
from campus_events.core.validators import is_valid_uuid
from campus_events.db.repositories import delete_assignments_for_event, insert_assignments
from campus_events.db.session import store_errors
from campus_events.events.publisher import publish_event

ALL_STUDENTS = "active"


@dataclass
class AssignmentJob:
    """A request to (re)assign the target population of one event."""
    event_id: int
    target_promotions: Optional[list]
    replace: bool = False
    credentials: Optional[str] = None
    attempt: int = 1

    def to_message(self) -> dict:
        return {"type": "assignment.requested", **asdict(self)}

    @classmethod
    def from_message(cls, data: dict) -> "AssignmentJob":
        target = data.get("target_promotions")
        return cls(
            event_id=int(data["event_id"]),
            target_promotions=list(target) if target is not None else None,
            replace=bool(data.get("replace", False)),
            credentials=data.get("credentials"),
            attempt=int(data.get("attempt", 1)),
        )


@dataclass
class AssignmentOutcome:
    event_id: int
    resolved: int = 0
    inserted: int = 0
    removed: int = 0
    failed_sources: List[str] = field(default_factory=list)
    skipped: bool = False


class AssignmentService:
    """
    Resolves target populations and writes assignments.

    Args:
        session: Database session
        profile_client: Client used to fetch rosters and profiles
    """

    def __init__(self, session: AsyncSession, profile_client: ProfileServiceClient):
        self.session = session
        self.profile_client = profile_client

    async def run(self, job: AssignmentJob) -> AssignmentOutcome:
        if job.replace:
            return await self.reassign(job.event_id, job.target_promotions)
        return await self.assign(job.event_id, job.target_promotions)

    async def assign(self, event_id: int, target_promotions: Optional[list]) -> AssignmentOutcome:
        """
        Add the target population to the event, keeping existing rows.

        Raises:
            StoreFailure: If the batch insert fails
        """
        outcome = AssignmentOutcome(event_id=event_id)
        if target_promotions is not None and len(target_promotions) == 0:
            logger.info(f"No target promotions for event {event_id}, skipping student assignment")
            outcome.skipped = True
            return outcome

        student_ids, outcome.failed_sources = await self.resolve_students(target_promotions)
        outcome.resolved = len(student_ids)

        async with store_errors(self.session, f"Failed to assign students to event {event_id}"):
            outcome.inserted = await insert_assignments(self.session, event_id, student_ids)
            await self.session.commit()

        logger.info(
            f"Assigned event {event_id}: {outcome.resolved} students resolved, "
            f"{outcome.inserted} new assignments, failed sources: {outcome.failed_sources or 'none'}"
        )
        return outcome

    async def reassign(self, event_id: int, target_promotions: Optional[list]) -> AssignmentOutcome:
        """
        Replace the event's assignments with the target population.

        The roster is fetched first; the delete and the insert then commit
        together. When every roster source failed the existing assignments
        are kept.
        """
        outcome = AssignmentOutcome(event_id=event_id)
        student_ids: List[uuid.UUID] = []
        if target_promotions is None or len(target_promotions) > 0:
            student_ids, outcome.failed_sources = await self.resolve_students(target_promotions)
            outcome.resolved = len(student_ids)
            sources = 1 if target_promotions is None else len(set(map(str, target_promotions)))
            if len(outcome.failed_sources) == sources:
                logger.warning(
                    f"Profile service failed for every source of event {event_id}; "
                    f"keeping existing assignments"
                )
                outcome.skipped = True
                return outcome

        async with store_errors(self.session, f"Failed to replace assignments of event {event_id}"):
            outcome.removed = await delete_assignments_for_event(self.session, event_id)
            outcome.inserted = await insert_assignments(self.session, event_id, student_ids)
            await self.session.commit()

        logger.info(
            f"Reassigned event {event_id}: removed {outcome.removed}, "
            f"inserted {outcome.inserted} of {outcome.resolved} resolved students"
        )
        return outcome

    async def resolve_students(self, target_promotions: Optional[list]) -> Tuple[List[uuid.UUID], List[str]]:
        """
        Turn a target descriptor into distinct student ids.

        Returns:
            (student ids in first-seen order, roster sources that failed)
        """
        failed: List[str] = []
        if target_promotions is None:
            logger.info("Fetching all active students")
            sources = [(ALL_STUDENTS, self.profile_client.get_active_students())]
        else:
            promotions = list(dict.fromkeys(str(p) for p in target_promotions))
            logger.info(f"Fetching students of promotions: {', '.join(promotions)}")
            sources = [(p, self.profile_client.get_students_by_promotion(p)) for p in promotions]

        rosters = await asyncio.gather(*(coro for _, coro in sources), return_exceptions=True)

        records = []
        for (source, _), roster in zip(sources, rosters):
            if isinstance(roster, UpstreamFailure):
                logger.error(f"Could not fetch roster for {source}: {roster.error}")
                failed.append(source)
                continue
            if isinstance(roster, BaseException):
                raise roster
            if not roster:
                logger.info(f"No students found for {source}")
            records.extend(roster)

        identities = await asyncio.gather(*(self._identity_for(record) for record in records))

        student_ids: List[uuid.UUID] = []
        seen = set()
        for record, identity in zip(records, identities):
            if identity is None:
                logger.warning(f"Dropping student record without a resolvable identity: {record}")
                continue
            if not is_valid_uuid(identity):
                logger.warning(f"Dropping student record with malformed identity {identity!r}")
                continue
            sid = uuid.UUID(identity)
            if sid not in seen:
                seen.add(sid)
                student_ids.append(sid)
        return student_ids, failed

    async def _identity_for(self, record: dict) -> Optional[str]:
        profile = record.get("profile") if isinstance(record.get("profile"), dict) else {}
        direct = record.get("id_user") or profile.get("id_user")
        if direct:
            return str(direct)

        ref = record.get("id_profile") or record.get("profile_id") or profile.get("id")
        if not ref:
            return None
        try:
            found = await self.profile_client.get_profile(ref)
        except UpstreamFailure as e:
            logger.error(f"Profile lookup failed for {ref}: {e.error}")
            return None
        if found and found.get("id_user"):
            return str(found["id_user"])
        return None


async def run_assignment_job(service: AssignmentService, job: AssignmentJob) -> Optional[AssignmentOutcome]:
    """Run a job, logging instead of raising; the triggering write has already succeeded."""
    try:
        return await service.run(job)
    except Exception as e:
        logger.error(f"Assignment job for event {job.event_id} failed: {e}")
        return None


async def dispatch_assignment_job(
    job: AssignmentJob,
    session: AsyncSession,
    profile_client: ProfileServiceClient,
) -> Optional[AssignmentOutcome]:
    """
    Hand an assignment job to the configured executor.

    In "queue" mode the job is published for the worker; if publishing fails
    it runs inline instead. Inline runs are awaited.
    """
    if settings.ASSIGNMENT_DISPATCH == "queue":
        try:
            await publish_event("assignment.requested", job.to_message())
            logger.info(f"Queued assignment job for event {job.event_id}")
            return None
        except Exception as e:
            logger.error(f"Could not queue assignment job for event {job.event_id}, running inline: {e}")
    return await run_assignment_job(AssignmentService(session, profile_client), job)
