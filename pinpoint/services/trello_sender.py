"""Trello sender: uploads a feedback screenshot as a new card.

The card is created with a single POST to Trello's card endpoint carrying
the JPEG screenshot as a multipart file part. The upload runs as an
asyncio task; ``send`` returns as soon as it is scheduled.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass

import httpx

from pinpoint.config import get_settings
from pinpoint.models.feedback import FeedbackPayload
from pinpoint.services.http_client import get_shared_client
from pinpoint.services.image_encoding import ImageEncodingError, encode_jpeg
from pinpoint.services.multipart import CONTENT_TYPE, build_body
from pinpoint.services.sender import (
    FeedbackSendError,
    Presenter,
    SenderDelegate,
    SenderErrorKind,
    SenderSuccess,
)

logger = logging.getLogger(__name__)

# Identifiers are interpolated verbatim; callers supply URL-safe values.
CARDS_URL_TEMPLATE = (
    "https://api.trello.com/1/cards?idList={list_id}&due=null&key={key}&token={token}"
)
JPEG_QUALITY = 0.8


def build_cards_url(key: str, token: str, list_id: str) -> str:
    """Return the card-creation endpoint for a list, validated.

    Raises:
        FeedbackSendError: ``INVALID_DESTINATION_URL`` if the result does not
            parse as a URL.
    """
    url = CARDS_URL_TEMPLATE.format(list_id=list_id, key=key, token=token)
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise FeedbackSendError(SenderErrorKind.INVALID_DESTINATION_URL, str(e)) from e
    return url


@dataclass(frozen=True)
class UploadRequest:
    """A fully built upload, ready to hand to the transport."""

    url: str
    headers: dict[str, str]
    body: bytes


class TrelloSender:
    """Sends feedback to a Trello list.

    The delegate is held weakly: the sender never keeps it alive. Each
    ``send`` captures its own payload, so overlapping sends are independent.
    """

    def __init__(
        self,
        key: str,
        token: str,
        list_id: str,
        *,
        client: httpx.AsyncClient | None = None,
        legacy_closing_boundary: bool = False,
        check_status: bool = False,
    ) -> None:
        self._key = key
        self._token = token
        self._list_id = list_id
        self._client = client
        self._legacy_closing_boundary = legacy_closing_boundary
        self._check_status = check_status
        self._delegate_ref: weakref.ref[SenderDelegate] | None = None
        # In-flight uploads; discarded as each finishes
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def delegate(self) -> SenderDelegate | None:
        return self._delegate_ref() if self._delegate_ref is not None else None

    @delegate.setter
    def delegate(self, value: SenderDelegate | None) -> None:
        self._delegate_ref = weakref.ref(value) if value is not None else None

    def build_upload_request(self, feedback: FeedbackPayload) -> UploadRequest:
        """Encode the screenshot and frame the multipart request.

        Raises:
            FeedbackSendError: ``IMAGE_ENCODING_FAILED``,
                ``INVALID_DESTINATION_URL`` or ``TEXT_ENCODING_FAILED``.
        """
        try:
            image = encode_jpeg(feedback.screenshot.preferred_image, JPEG_QUALITY)
        except ImageEncodingError as e:
            raise FeedbackSendError(SenderErrorKind.IMAGE_ENCODING_FAILED, str(e)) from e

        url = build_cards_url(self._key, self._token, self._list_id)
        body = build_body(
            image,
            feedback.text,
            legacy_closing_boundary=self._legacy_closing_boundary,
        )
        return UploadRequest(url=url, headers={"Content-Type": CONTENT_TYPE}, body=body)

    def send(
        self, feedback: FeedbackPayload, presenter: Presenter | None
    ) -> asyncio.Task[None] | None:
        """Schedule the upload of ``feedback`` and dismiss ``presenter``.

        Must be called with a running event loop. Failures detected before
        any network activity are reported to the delegate immediately and
        ``None`` is returned; otherwise the upload task is returned and the
        delegate hears back when it completes.
        """
        if presenter is None:
            self._fail(feedback, FeedbackSendError(SenderErrorKind.NO_PRESENTATION_CONTEXT))
            return None

        try:
            request = self.build_upload_request(feedback)
        except FeedbackSendError as e:
            self._fail(feedback, e)
            return None

        task = asyncio.get_running_loop().create_task(self._upload(request, feedback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        # Dismissal does not wait for the upload
        presenter.dismiss()
        return task

    async def _upload(self, request: UploadRequest, feedback: FeedbackPayload) -> None:
        client = self._client or get_shared_client()
        try:
            resp = await client.post(request.url, content=request.body, headers=request.headers)
            if self._check_status:
                resp.raise_for_status()
        except httpx.HTTPError as e:
            # Messages from httpx can embed the URL, which carries the token
            if isinstance(e, httpx.HTTPStatusError):
                detail = f"HTTP {e.response.status_code}"
            else:
                detail = type(e).__name__
            error = FeedbackSendError(SenderErrorKind.UPLOAD_FAILED, detail)
            error.__cause__ = e
            self._fail(feedback, error)
            return
        except Exception as e:
            logger.exception("Unexpected error uploading feedback %s", feedback.id)
            error = FeedbackSendError(SenderErrorKind.UPLOAD_FAILED, type(e).__name__)
            error.__cause__ = e
            self._fail(feedback, error)
            return

        logger.debug("Trello responded %d for feedback %s", resp.status_code, feedback.id)
        self._succeed(feedback, SenderSuccess.SENT)

    def _fail(self, feedback: FeedbackPayload, error: FeedbackSendError) -> None:
        logger.warning("Feedback %s not sent: %s", feedback.id, error)
        delegate = self.delegate
        if delegate is not None:
            delegate.sender_did_fail_to_send(self, feedback, error)

    def _succeed(self, feedback: FeedbackPayload, success: SenderSuccess) -> None:
        logger.info("Feedback %s sent to Trello list %s", feedback.id, self._list_id)
        delegate = self.delegate
        if delegate is not None:
            delegate.sender_did_send(self, feedback, success)


def sender_from_settings(client: httpx.AsyncClient | None = None) -> TrelloSender:
    """Build a sender from application settings."""
    settings = get_settings()
    return TrelloSender(
        settings.trello_api_key,
        settings.trello_api_token,
        settings.trello_list_id,
        client=client,
        legacy_closing_boundary=settings.trello_legacy_closing_boundary,
        check_status=settings.trello_check_status,
    )
