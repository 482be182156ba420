"""multipart/form-data body construction for feedback uploads.

The boundary is a fixed literal rather than a per-request random value, so
the same inputs always produce byte-identical bodies.
"""

from pinpoint.services.sender import FeedbackSendError, SenderErrorKind

BOUNDARY = "---------------------------14737809831466499882746641449"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"
CRLF = "\r\n"

FILE_FIELD = "file"
FILE_NAME = "img.jpg"
TEXT_FIELD = "desc"


def _utf8(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise FeedbackSendError(SenderErrorKind.TEXT_ENCODING_FAILED, str(e)) from e


def build_body(
    image: bytes,
    text: str | None = None,
    *,
    legacy_closing_boundary: bool = False,
) -> bytes:
    """Assemble the request body for one JPEG upload.

    Layout::

        CRLF --BOUNDARY CRLF
        [Content-Disposition: form-data; name="desc" CRLF CRLF <text> CRLF --BOUNDARY CRLF]
        Content-Disposition: form-data; name="file"; filename="img.jpg" CRLF
        Content-Type: application/octet-stream CRLF CRLF
        <image bytes>
        CRLF --BOUNDARY-- CRLF        (legacy: CRLF --BOUNDARY)

    Raises:
        FeedbackSendError: ``TEXT_ENCODING_FAILED`` if any string part is not
            valid UTF-8 (only possible for text with lone surrogates).
    """
    delimiter = _utf8(f"{CRLF}--{BOUNDARY}{CRLF}")

    body = bytearray(delimiter)
    if text:
        body += _utf8(f'Content-Disposition: form-data; name="{TEXT_FIELD}"{CRLF}{CRLF}')
        body += _utf8(text)
        body += delimiter
    body += _utf8(
        f'Content-Disposition: form-data; name="{FILE_FIELD}"; filename="{FILE_NAME}"{CRLF}'
    )
    body += _utf8(f"Content-Type: application/octet-stream{CRLF}{CRLF}")
    body += image

    if legacy_closing_boundary:
        body += _utf8(f"{CRLF}--{BOUNDARY}")
    else:
        body += _utf8(f"{CRLF}--{BOUNDARY}--{CRLF}")
    return bytes(body)
