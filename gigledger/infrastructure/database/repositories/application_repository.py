"""SQLAlchemy implementation for job applications."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from gigledger.db.models import Job, JobApplication, generate_uuid
from gigledger.infrastructure.database.types import utcnow
from gigledger.modules.wallets.exceptions import AlreadyApplied
from gigledger.modules.wallets.models import ApplicationRecord, JobSummary

from .base import SqlRepository


class SqlApplicationRepository(SqlRepository):
    async def get_job(self, job_id: str) -> JobSummary | None:
        result = await self.execute(select(Job).where(Job.id == job_id))
        job = result.scalars().first()
        if job is None:
            return None
        return JobSummary(id=job.id, employer_id=job.employer_id, title=job.title)

    async def find_application(self, job_id: str, applicant_id: str) -> ApplicationRecord | None:
        stmt = select(JobApplication).where(
            JobApplication.job_id == job_id,
            JobApplication.applicant_id == applicant_id,
        )
        result = await self.execute(stmt)
        row = result.scalars().first()
        return _to_record(row) if row else None

    async def add_application(
        self,
        *,
        job_id: str,
        applicant_id: str,
        cover_letter: str | None,
        bid_amount: int | None,
        tokens_spent: int,
    ) -> ApplicationRecord:
        application = JobApplication(
            id=generate_uuid(),
            job_id=job_id,
            applicant_id=applicant_id,
            cover_letter=cover_letter,
            bid_amount=bid_amount,
            tokens_spent=tokens_spent,
            created_at=utcnow(),
        )
        self.session.add(application)
        try:
            await self.flush()
        except IntegrityError as exc:
            raise AlreadyApplied() from exc
        return _to_record(application)


def _to_record(model: JobApplication) -> ApplicationRecord:
    return ApplicationRecord(
        id=model.id,
        job_id=model.job_id,
        applicant_id=model.applicant_id,
        cover_letter=model.cover_letter,
        bid_amount=model.bid_amount,
        tokens_spent=model.tokens_spent,
        created_at=model.created_at,
    )
