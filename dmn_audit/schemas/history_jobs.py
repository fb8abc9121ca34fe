"""History job admin schemas."""

from uuid import UUID

from pydantic import BaseModel, Field


class ResetExpiredJobsRequest(BaseModel):
    """POST /v1/admin/history-jobs/reset-expired request.

    When job_ids is empty, the currently expired jobs are looked up first.
    Ids that are not UUIDs are rejected with 422.
    """

    job_ids: list[UUID] = Field(default_factory=list)


class ExpiredJobsResponse(BaseModel):
    """History job ids, as listed or reset."""

    job_ids: list[str] = Field(default_factory=list)
    message_queue_mode: bool
