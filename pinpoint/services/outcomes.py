"""In-memory tracking of submission outcomes."""

import time
from collections import OrderedDict

from pinpoint.models.feedback import FeedbackPayload, SubmissionOutcome
from pinpoint.services.sender import FeedbackSendError, Sender, SenderSuccess


class OutcomeStore:
    """Submission outcomes keyed by id, with time-to-live and max-size eviction.

    Usage::

        store = OutcomeStore(ttl=3600, max_size=1000)
        store.mark_sending(feedback.id)
        store.get(feedback.id)  # SubmissionOutcome, or None if expired/missing
    """

    def __init__(self, ttl: float = 3600, max_size: int = 1000) -> None:
        self._ttl = ttl
        self._max_size = max_size
        # OrderedDict preserves insertion order for LRU eviction
        self._store: OrderedDict[str, tuple[SubmissionOutcome, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._store)

    def get(self, submission_id: str) -> SubmissionOutcome | None:
        entry = self._store.get(submission_id)
        if entry is None:
            return None
        outcome, ts = entry
        if time.time() - ts > self._ttl:
            del self._store[submission_id]
            return None
        return outcome

    def put(self, outcome: SubmissionOutcome) -> None:
        """Store an outcome, evicting the oldest entries if over capacity."""
        key = outcome.submission_id
        if key in self._store:
            self._store.move_to_end(key)
        self._store[key] = (outcome, time.time())
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)

    def mark_sending(self, submission_id: str) -> SubmissionOutcome:
        outcome = SubmissionOutcome(submission_id=submission_id)
        self.put(outcome)
        return outcome

    def clear(self) -> None:
        self._store.clear()


class RecordingDelegate:
    """Sender delegate that writes each terminal outcome into a store."""

    def __init__(self, store: OutcomeStore) -> None:
        self.store = store

    def sender_did_send(
        self, sender: Sender, feedback: FeedbackPayload, success: SenderSuccess
    ) -> None:
        self.store.put(SubmissionOutcome(submission_id=feedback.id, status="sent"))

    def sender_did_fail_to_send(
        self, sender: Sender, feedback: FeedbackPayload, error: FeedbackSendError
    ) -> None:
        self.store.put(
            SubmissionOutcome(
                submission_id=feedback.id, status="failed", error=error.kind.value
            )
        )
