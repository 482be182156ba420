"""Tests for the send_feedback command-line script."""

import httpx

from scripts.send_feedback import main


async def test_sends_image_and_returns_zero(mock_settings, mocker, tmp_path, red_png):
    mocker.patch("scripts.send_feedback.get_settings", return_value=mock_settings)
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "card-1"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    mocker.patch(
        "pinpoint.services.trello_sender.get_shared_client", return_value=client
    )
    image = tmp_path / "shot.png"
    image.write_bytes(red_png)

    assert await main([str(image), "--text", "Layout broken"]) == 0
    assert len(seen) == 1
    assert b"Layout broken" in seen[0].content


async def test_upload_failure_returns_one(mock_settings, mocker, tmp_path, red_png):
    mocker.patch("scripts.send_feedback.get_settings", return_value=mock_settings)

    def handler(request):
        raise httpx.ConnectError("unreachable")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    mocker.patch(
        "pinpoint.services.trello_sender.get_shared_client", return_value=client
    )
    image = tmp_path / "shot.png"
    image.write_bytes(red_png)

    assert await main([str(image)]) == 1


async def test_bad_image_returns_one_without_request(mock_settings, mocker, tmp_path):
    mocker.patch("scripts.send_feedback.get_settings", return_value=mock_settings)
    image = tmp_path / "notes.txt"
    image.write_bytes(b"plain text")

    assert await main([str(image)]) == 1


async def test_missing_credentials_returns_one(mock_settings, mocker, tmp_path):
    mock_settings.trello_api_key = ""
    mocker.patch("scripts.send_feedback.get_settings", return_value=mock_settings)

    assert await main([str(tmp_path / "unused.png")]) == 1


async def test_unexpected_transport_error_returns_one(
    mock_settings, mocker, tmp_path, red_png
):
    mocker.patch("scripts.send_feedback.get_settings", return_value=mock_settings)
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    await client.aclose()
    mocker.patch(
        "pinpoint.services.trello_sender.get_shared_client", return_value=client
    )
    image = tmp_path / "shot.png"
    image.write_bytes(red_png)

    assert await main([str(image)]) == 1
