"""Feedback payload and submission outcome models."""

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Screenshot(BaseModel):
    """A captured screenshot, optionally with the user's annotations applied."""

    model_config = ConfigDict(frozen=True)

    original: bytes
    annotated: bytes | None = None

    @property
    def preferred_image(self) -> bytes:
        """The annotated image when one exists, otherwise the original."""
        return self.annotated if self.annotated else self.original


class FeedbackPayload(BaseModel):
    """A user's report: screenshot plus optional text. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    screenshot: Screenshot
    text: str | None = None


class SubmissionOutcome(BaseModel):
    """Tracked state of one submission."""

    submission_id: str
    status: Literal["sending", "sent", "failed"] = "sending"
    error: str | None = None  # SenderErrorKind value when failed
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SubmissionAccepted(BaseModel):
    """Response after a submission has been dispatched."""

    submission_id: str
    status: str = "sending"
    message: str
