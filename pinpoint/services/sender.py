"""Sender abstraction: the contract between feedback flows and backends.

A sender takes a ``FeedbackPayload`` and a presenter, delivers the payload
asynchronously, and tells its delegate about the result exactly once.

Usage:
    sender.delegate = my_delegate
    sender.send(feedback, presenter)
"""

from enum import Enum
from typing import Protocol

from pinpoint.models.feedback import FeedbackPayload


class SenderSuccess(str, Enum):
    """A success in sending feedback."""

    SENT = "sent"


class SenderErrorKind(str, Enum):
    """Why a feedback submission failed."""

    UNKNOWN = "unknown"  # reserved, not raised by the Trello sender
    NO_PRESENTATION_CONTEXT = "no_presentation_context"
    IMAGE_ENCODING_FAILED = "image_encoding_failed"
    INVALID_DESTINATION_URL = "invalid_destination_url"
    TEXT_ENCODING_FAILED = "text_encoding_failed"
    UPLOAD_FAILED = "upload_failed"


class FeedbackSendError(Exception):
    """A typed failure raised where it happens and reported to the delegate."""

    def __init__(self, kind: SenderErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class Presenter(Protocol):
    """The surface hosting the feedback flow; only ever asked to go away."""

    def dismiss(self) -> None: ...


class SenderDelegate(Protocol):
    """Receives the terminal outcome of each ``send`` call."""

    def sender_did_send(
        self, sender: "Sender", feedback: FeedbackPayload, success: SenderSuccess
    ) -> None: ...

    def sender_did_fail_to_send(
        self, sender: "Sender", feedback: FeedbackPayload, error: FeedbackSendError
    ) -> None: ...


class Sender(Protocol):
    delegate: SenderDelegate | None

    def send(self, feedback: FeedbackPayload, presenter: Presenter | None) -> object: ...
