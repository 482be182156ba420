"""Feedback submission endpoints with rate limiting and outcome tracking."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from pinpoint.config import get_settings
from pinpoint.models.feedback import (
    FeedbackPayload,
    Screenshot,
    SubmissionAccepted,
    SubmissionOutcome,
)
from pinpoint.services.outcomes import OutcomeStore, RecordingDelegate
from pinpoint.services.sender import SenderErrorKind
from pinpoint.services.trello_sender import TrelloSender, sender_from_settings

router = APIRouter(prefix="/feedback", tags=["feedback"])
logger = logging.getLogger(__name__)

# In-memory rate limiter: {ip: [timestamps]}
_rate_limits: dict[str, list[float]] = defaultdict(list)
RATE_LIMIT_WINDOW = 3600  # 1 hour
RATE_LIMIT_MAX = 5

# Lazy singletons. The delegate is referenced here because the sender only
# holds it weakly.
_store: OutcomeStore | None = None
_delegate: RecordingDelegate | None = None
_sender: TrelloSender | None = None

_STATUS_BY_ERROR = {
    SenderErrorKind.IMAGE_ENCODING_FAILED: 422,
    SenderErrorKind.TEXT_ENCODING_FAILED: 422,
    SenderErrorKind.INVALID_DESTINATION_URL: 503,
}


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate limited."""
    now = time.time()
    cutoff = now - RATE_LIMIT_WINDOW
    _rate_limits[ip] = [ts for ts in _rate_limits[ip] if ts > cutoff]
    if len(_rate_limits[ip]) >= RATE_LIMIT_MAX:
        return False
    _rate_limits[ip].append(now)
    return True


def get_outcome_store() -> OutcomeStore:
    global _store
    if _store is None:
        settings = get_settings()
        _store = OutcomeStore(
            ttl=settings.outcome_ttl_seconds, max_size=settings.outcome_max_entries
        )
    return _store


def _get_sender() -> TrelloSender:
    global _sender, _delegate
    if _sender is None:
        _delegate = RecordingDelegate(get_outcome_store())
        _sender = sender_from_settings()
        _sender.delegate = _delegate
    return _sender


class _SubmissionPresenter:
    """Stands in for the feedback screen: dismissal means the upload is on its way."""

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        self.dismissed = False

    def dismiss(self) -> None:
        self.dismissed = True


async def _read_image(upload: UploadFile, max_bytes: int) -> bytes:
    data = await upload.read(max_bytes + 1)
    if not data:
        raise HTTPException(status_code=422, detail=f"{upload.filename or 'file'} is empty")
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail="Screenshot too large")
    return data


@router.post("", response_model=SubmissionAccepted, status_code=202)
async def submit_feedback(
    request: Request,
    screenshot: UploadFile = File(...),
    annotated_screenshot: UploadFile | None = File(None),
    text: str | None = Form(None),
):
    """Submit a screenshot (and optional notes). Uploaded to Trello in the background."""
    client_ip = request.client.host if request.client else "unknown"

    if not _check_rate_limit(client_ip):
        raise HTTPException(
            status_code=429, detail="Too many submissions. Try again later."
        )

    settings = get_settings()
    if not settings.trello_configured:
        logger.error("Feedback rejected: Trello credentials are not configured")
        raise HTTPException(status_code=503, detail="Feedback is not available.")

    original = await _read_image(screenshot, settings.max_screenshot_bytes)
    annotated = None
    if annotated_screenshot is not None:
        annotated = await _read_image(annotated_screenshot, settings.max_screenshot_bytes)

    feedback = FeedbackPayload(
        screenshot=Screenshot(original=original, annotated=annotated),
        text=text or None,
    )

    store = get_outcome_store()
    store.mark_sending(feedback.id)
    presenter = _SubmissionPresenter(feedback.id)
    _get_sender().send(feedback, presenter)

    if not presenter.dismissed:
        # Failed before any network activity; the delegate has already recorded why
        outcome = store.get(feedback.id)
        kind = SenderErrorKind(outcome.error) if outcome and outcome.error else SenderErrorKind.UNKNOWN
        logger.warning("Feedback from %s rejected: %s", client_ip, kind.value)
        raise HTTPException(
            status_code=_STATUS_BY_ERROR.get(kind, 500),
            detail=f"Feedback could not be sent ({kind.value}).",
        )

    logger.info("Accepted feedback %s from %s", feedback.id, client_ip)
    return SubmissionAccepted(
        submission_id=feedback.id,
        message="Thank you for your feedback!",
    )


@router.get("/{submission_id}", response_model=SubmissionOutcome)
async def get_submission(submission_id: str):
    """Current state of a submission: sending, sent, or failed."""
    outcome = get_outcome_store().get(submission_id)
    if outcome is None:
        raise HTTPException(status_code=404, detail="Unknown submission")
    return outcome
