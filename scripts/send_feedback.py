"""Send a feedback report to Trello from the command line.

Usage:
    python -m scripts.send_feedback screenshot.png
    python -m scripts.send_feedback screenshot.png --annotated marked-up.png --text "Button overlaps label"

Credentials come from TRELLO_API_KEY, TRELLO_API_TOKEN and TRELLO_LIST_ID
(or a .env file).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pinpoint.config import get_settings
from pinpoint.models.feedback import FeedbackPayload, Screenshot
from pinpoint.services.http_client import close_shared_client
from pinpoint.services.sender import FeedbackSendError, Sender, SenderSuccess
from pinpoint.services.trello_sender import sender_from_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


class _ConsolePresenter:
    def dismiss(self) -> None:
        print("Upload scheduled.")


class _WaitingDelegate:
    """Resolves a future with the outcome so the script can exit on it."""

    def __init__(self) -> None:
        self.outcome: asyncio.Future[FeedbackSendError | None] = (
            asyncio.get_running_loop().create_future()
        )

    def sender_did_send(
        self, sender: Sender, feedback: FeedbackPayload, success: SenderSuccess
    ) -> None:
        self.outcome.set_result(None)

    def sender_did_fail_to_send(
        self, sender: Sender, feedback: FeedbackPayload, error: FeedbackSendError
    ) -> None:
        self.outcome.set_result(error)


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send a feedback report to Trello")
    parser.add_argument("image", type=Path, help="Screenshot to attach")
    parser.add_argument("--annotated", type=Path, help="Annotated version of the screenshot")
    parser.add_argument("--text", help="Notes to store as the card description")
    args = parser.parse_args(argv)

    if not get_settings().trello_configured:
        print("ERROR: set TRELLO_API_KEY, TRELLO_API_TOKEN and TRELLO_LIST_ID")
        return 1

    feedback = FeedbackPayload(
        screenshot=Screenshot(
            original=args.image.read_bytes(),
            annotated=args.annotated.read_bytes() if args.annotated else None,
        ),
        text=args.text,
    )

    delegate = _WaitingDelegate()
    sender = sender_from_settings()
    sender.delegate = delegate
    try:
        sender.send(feedback, _ConsolePresenter())
        error = await delegate.outcome
    finally:
        await close_shared_client()

    if error is not None:
        print(f"ERROR: feedback not sent ({error.kind.value})")
        return 1
    print(f"Feedback {feedback.id} sent.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
