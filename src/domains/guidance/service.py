# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guidance office service.

This module provides the GuidanceService that handles:
- Behavior records, with escalation notices to parents and teachers
- Counseling sessions, shared according to their confidentiality
- Wellness programs and their participants
- Ad-hoc notifications from the guidance office

Example:
    >>> service = GuidanceService(db)
    >>> record = await service.create_behavior_record(request, reported_by=counselor_id)
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    BehaviorRecord,
    CounselingSession,
    ProgramParticipant,
    User,
    WellnessProgram,
)
from src.models.guidance import (
    BehaviorRecordCreateRequest,
    BehaviorRecordUpdateRequest,
    CounselingSessionCreateRequest,
    CounselingSessionUpdateRequest,
    ParticipantResponse,
    WellnessProgramCreateRequest,
    WellnessProgramResponse,
    WellnessProgramUpdateRequest,
)
from src.utils.datetime import ensure_utc, utc_today

logger = logging.getLogger(__name__)


class GuidanceServiceError(Exception):
    """Base exception for guidance service errors."""

    pass


class GuidanceStudentNotFoundError(GuidanceServiceError):
    pass


class BehaviorRecordNotFoundError(GuidanceServiceError):
    pass


class CounselingSessionNotFoundError(GuidanceServiceError):
    pass


class ProgramNotFoundError(GuidanceServiceError):
    pass


class ParticipantExistsError(GuidanceServiceError):
    """Raised when a student is already enrolled in a program."""

    pass


class ParticipantNotFoundError(GuidanceServiceError):
    pass


class ProgramFullError(GuidanceServiceError):
    """Raised when a program has reached its capacity."""

    pass


class GuidanceService:
    """Behavior, counseling and wellness records.

    Attributes:
        _db: Async database session.
        _notifier: Notification service.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationService | None = None) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)

    # ------------------------------------------------------------------
    # Behavior records
    # ------------------------------------------------------------------

    async def list_behavior_records(
        self,
        student_id: str | None = None,
        status: str | None = None,
    ) -> list[BehaviorRecord]:
        stmt = select(BehaviorRecord)
        if student_id:
            stmt = stmt.where(BehaviorRecord.student_id == student_id)
        if status:
            stmt = stmt.where(BehaviorRecord.status == status)
        result = await self._db.execute(
            stmt.order_by(BehaviorRecord.incident_date.desc(), BehaviorRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_behavior_record(
        self, request: BehaviorRecordCreateRequest, reported_by: str
    ) -> BehaviorRecord:
        """Record an incident. An escalated incident notifies parents and teachers."""
        student = await self._get_student(request.student_id)

        record = BehaviorRecord(**request.model_dump(), reported_by=reported_by)
        self._db.add(record)
        await self._db.commit()
        await self._db.refresh(record)

        if record.status == "escalated":
            await self._notify_escalation(record, student, reported_by)
        logger.info("Behavior record created: %s (status=%s)", record.id, record.status)
        return record

    async def update_behavior_record(
        self,
        record_id: str,
        request: BehaviorRecordUpdateRequest,
        updated_by: str,
    ) -> BehaviorRecord:
        record = await self._db.get(BehaviorRecord, record_id)
        if record is None:
            raise BehaviorRecordNotFoundError(f"Behavior record {record_id} not found")
        previous_status = record.status

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "status":
                continue
            setattr(record, field, value)

        await self._db.commit()
        await self._db.refresh(record)

        if record.status == "escalated" and previous_status != "escalated":
            student = await self._get_student(record.student_id)
            await self._notify_escalation(record, student, updated_by)
        return record

    async def _notify_escalation(self, record: BehaviorRecord, student: User, sender_id: str) -> None:
        await self._notifier.notify_student_parents(
            student.id,
            "Behavior Incident Escalated",
            f"Behavioral incident escalated for student: {record.incident_type}",
            type="guidance",
            sender_id=sender_id,
        )
        if student.section_id:
            await self._notifier.notify_section_teachers(
                student.section_id,
                "Behavior Incident Escalated",
                f"Behavioral incident escalated: {record.incident_type}",
                type="guidance",
                sender_id=sender_id,
            )

    # ------------------------------------------------------------------
    # Counseling sessions
    # ------------------------------------------------------------------

    async def list_sessions(
        self,
        student_id: str | None = None,
        counselor_id: str | None = None,
    ) -> list[CounselingSession]:
        stmt = select(CounselingSession)
        if student_id:
            stmt = stmt.where(CounselingSession.student_id == student_id)
        if counselor_id:
            stmt = stmt.where(CounselingSession.counselor_id == counselor_id)
        result = await self._db.execute(stmt.order_by(CounselingSession.session_date.desc()))
        return list(result.scalars().all())

    async def create_session(
        self, request: CounselingSessionCreateRequest, counselor_id: str
    ) -> CounselingSession:
        """Log a counseling session and share it as its confidentiality allows."""
        student = await self._get_student(request.student_id)

        session = CounselingSession(
            student_id=student.id,
            counselor_id=counselor_id,
            session_date=ensure_utc(request.session_date),
            notes=request.notes,
            confidentiality=request.confidentiality,
            follow_up_date=request.follow_up_date,
        )
        self._db.add(session)
        await self._db.commit()
        await self._db.refresh(session)

        if session.confidentiality == "share_with_parent":
            await self._notifier.notify_student_parents(
                student.id,
                "Counseling Update",
                "Counseling session update for your child",
                type="guidance",
                sender_id=counselor_id,
            )
        elif session.confidentiality == "share_with_teacher" and student.section_id:
            await self._notifier.notify_section_teachers(
                student.section_id,
                "Counseling Update",
                "Counseling session update for student",
                type="guidance",
                sender_id=counselor_id,
            )
        logger.info("Counseling session logged: %s (%s)", session.id, session.confidentiality)
        return session

    async def update_session(
        self, session_id: str, request: CounselingSessionUpdateRequest
    ) -> CounselingSession:
        session = await self._db.get(CounselingSession, session_id)
        if session is None:
            raise CounselingSessionNotFoundError(f"Counseling session {session_id} not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "confidentiality":
                continue
            setattr(session, field, value)

        await self._db.commit()
        await self._db.refresh(session)
        return session

    async def list_parent_visible(
        self, student_id: str
    ) -> tuple[list[BehaviorRecord], list[CounselingSession]]:
        """Behavior records and parent-shared sessions of a student."""
        records = await self.list_behavior_records(student_id=student_id)
        result = await self._db.execute(
            select(CounselingSession)
            .where(
                CounselingSession.student_id == student_id,
                CounselingSession.confidentiality == "share_with_parent",
            )
            .order_by(CounselingSession.session_date.desc())
        )
        return records, list(result.scalars().all())

    # ------------------------------------------------------------------
    # Wellness programs
    # ------------------------------------------------------------------

    async def list_programs(self, active_only: bool = False) -> list[WellnessProgramResponse]:
        stmt = select(WellnessProgram)
        if active_only:
            stmt = stmt.where(
                or_(WellnessProgram.end_date.is_(None), WellnessProgram.end_date >= utc_today())
            )
        result = await self._db.execute(stmt.order_by(WellnessProgram.start_date, WellnessProgram.name))
        programs = list(result.scalars().all())
        counts = await self._participant_counts([p.id for p in programs])
        return [self._program_response(p, counts.get(p.id, 0)) for p in programs]

    async def create_program(
        self, request: WellnessProgramCreateRequest, created_by: str
    ) -> WellnessProgramResponse:
        """Create a program and announce it to every student."""
        if request.start_date and request.end_date and request.end_date < request.start_date:
            raise GuidanceServiceError("end_date must not be before start_date")

        program = WellnessProgram(**request.model_dump(), created_by=created_by)
        self._db.add(program)
        await self._db.commit()
        await self._db.refresh(program)

        await self._notifier.notify_role(
            Role.STUDENT.value,
            "Wellness Program",
            f"New wellness program available: {program.name}",
            type="wellness",
            sender_id=created_by,
        )
        logger.info("Wellness program created: %s", program.id)
        return self._program_response(program, 0)

    async def update_program(
        self, program_id: str, request: WellnessProgramUpdateRequest
    ) -> WellnessProgramResponse:
        program = await self._get_program(program_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "name":
                continue
            setattr(program, field, value)

        await self._db.commit()
        await self._db.refresh(program)
        counts = await self._participant_counts([program.id])
        return self._program_response(program, counts.get(program.id, 0))

    async def delete_program(self, program_id: str) -> None:
        program = await self._get_program(program_id)
        await self._db.delete(program)
        await self._db.commit()

    async def list_participants(self, program_id: str) -> list[ParticipantResponse]:
        await self._get_program(program_id)
        result = await self._db.execute(
            select(ProgramParticipant, User.name)
            .join(User, User.id == ProgramParticipant.student_id)
            .where(ProgramParticipant.program_id == program_id)
            .order_by(User.name)
        )
        return [self._participant_response(p, name) for p, name in result.all()]

    async def add_participant(self, program_id: str, student_id: str) -> ParticipantResponse:
        """Enroll a student in a program.

        Raises:
            ProgramNotFoundError: If the program does not exist.
            ParticipantExistsError: If the student already participates.
            ProgramFullError: If the program is at capacity.
        """
        program = await self._get_program(program_id)
        student = await self._get_student(student_id)

        existing = await self._db.scalar(
            select(ProgramParticipant.id).where(
                ProgramParticipant.program_id == program_id,
                ProgramParticipant.student_id == student_id,
            )
        )
        if existing:
            raise ParticipantExistsError("Student is already a participant")

        if program.capacity is not None:
            counts = await self._participant_counts([program_id])
            if counts.get(program_id, 0) >= program.capacity:
                raise ProgramFullError("Program is full")

        participant = ProgramParticipant(program_id=program_id, student_id=student_id)
        self._db.add(participant)
        await self._db.commit()
        await self._db.refresh(participant)
        return self._participant_response(participant, student.name)

    async def remove_participant(self, program_id: str, student_id: str) -> None:
        result = await self._db.execute(
            select(ProgramParticipant).where(
                ProgramParticipant.program_id == program_id,
                ProgramParticipant.student_id == student_id,
            )
        )
        participant = result.scalar_one_or_none()
        if participant is None:
            raise ParticipantNotFoundError("Student is not a participant")
        await self._db.delete(participant)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def send_notification(
        self,
        sender_id: str,
        recipient_id: str,
        title: str,
        message: str,
        type: str = "guidance",
    ) -> None:
        if await self._db.get(User, recipient_id) is None:
            raise GuidanceStudentNotFoundError(f"User {recipient_id} not found")
        await self._notifier.notify_user(
            recipient_id, title, message, type=type, sender_id=sender_id
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_student(self, student_id: str) -> User:
        student = await self._db.get(User, student_id)
        if student is None or student.role != Role.STUDENT.value:
            raise GuidanceStudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _get_program(self, program_id: str) -> WellnessProgram:
        program = await self._db.get(WellnessProgram, program_id)
        if program is None:
            raise ProgramNotFoundError(f"Wellness program {program_id} not found")
        return program

    async def _participant_counts(self, program_ids: list[str]) -> dict[str, int]:
        if not program_ids:
            return {}
        result = await self._db.execute(
            select(ProgramParticipant.program_id, func.count(ProgramParticipant.id))
            .where(ProgramParticipant.program_id.in_(program_ids))
            .group_by(ProgramParticipant.program_id)
        )
        return {program_id: count for program_id, count in result.all()}

    @staticmethod
    def _program_response(program: WellnessProgram, participant_count: int) -> WellnessProgramResponse:
        return WellnessProgramResponse(
            id=program.id,
            name=program.name,
            description=program.description,
            start_date=program.start_date,
            end_date=program.end_date,
            capacity=program.capacity,
            participant_count=participant_count,
            created_at=program.created_at,
        )

    @staticmethod
    def _participant_response(participant: ProgramParticipant, student_name: str | None) -> ParticipantResponse:
        return ParticipantResponse(
            id=participant.id,
            program_id=participant.program_id,
            student_id=participant.student_id,
            student_name=student_name,
            joined_at=participant.joined_at,
        )
