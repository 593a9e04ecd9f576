from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_serializer

from crucible.app.models.enums import SubmissionStatus


class Author(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: str
    url: Optional[str] = None
    wallet: Optional[str] = None


class Submission(BaseModel):
    """
    A piece queued for moderation.
    Lives in submissions.json while pending or rejected, in gallery.json once approved.
    """
    model_config = ConfigDict(extra='ignore')

    id: str
    title: str
    discipline: str
    technique: str = "unspecified"
    content: str
    explanation: str = ""
    author: Author
    status: SubmissionStatus = SubmissionStatus.PENDING
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = Field(default=None)

    @model_serializer(mode="wrap")
    def _drop_unset_rejection(self, handler):
        # rejection_reason only exists on rejected records
        data = handler(self)
        if data.get("rejection_reason") is None:
            data.pop("rejection_reason", None)
        return data


SubmissionList = TypeAdapter(List[Submission])
