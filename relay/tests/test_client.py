import pytest
import requests
from unittest.mock import MagicMock, patch
from client.sdk.client import ChatRelayClient, RelayRequestError


def _response(status_code, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def relay_client():
    return ChatRelayClient(base_url="http://relay.test/", timeout=5)


def test_send_message(relay_client):
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.return_value = _response(200, {"reply": "hi there"})

        response = relay_client.send("hello")

        assert response.reply == "hi there"
        mock_request.assert_called_once_with(
            "POST",
            "http://relay.test/api/chat",
            timeout=5,
            json={"message": "hello"},
        )


def test_send_with_history(relay_client):
    history = [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.return_value = _response(200, {"reply": "ok"})

        relay_client.send("how are you?", history=history)

        sent = mock_request.call_args.kwargs["json"]
        assert "message" not in sent
        assert sent["messages"][-1] == {"role": "user", "content": "how are you?"}
        assert len(sent["messages"]) == 3


def test_error_body_raises(relay_client):
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.return_value = _response(
            429, {"error": "Rate limit exceeded. Try again shortly."}
        )

        with pytest.raises(RelayRequestError) as exc_info:
            relay_client.send("hello")

    assert exc_info.value.status_code == 429
    assert exc_info.value.error == "Rate limit exceeded. Try again shortly."


def test_error_without_json(relay_client):
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.return_value = _response(502, text="Bad Gateway")

        with pytest.raises(RelayRequestError) as exc_info:
            relay_client.send("hello")

    assert exc_info.value.error == "Bad Gateway"


def test_timeout_maps_to_timeout_error(relay_client):
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.side_effect = requests.exceptions.Timeout()

        with pytest.raises(TimeoutError):
            relay_client.send("hello")


def test_connection_failure(relay_client):
    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ConnectionError):
            relay_client.send("hello")


def test_health_and_status(relay_client):
    with patch.object(relay_client.session, "get") as mock_get:
        mock_get.return_value = _response(200, {"status": "ok"})
        assert relay_client.health_check() is True

        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert relay_client.health_check() is False

    with patch.object(relay_client.session, "request") as mock_request:
        mock_request.return_value = _response(200, {"ai_enabled": True})
        assert relay_client.status().ai_enabled is True


def test_cli_prints_reply(capsys):
    from client.cli import send_message
    from shared.schemas.chat import ChatResponse

    argv = ["send_message", "--url", "http://relay.test", "--message", "hello"]
    with patch("sys.argv", argv), patch.object(
        send_message.ChatRelayClient, "send", return_value=ChatResponse(reply="hi!")
    ):
        send_message.main()

    assert capsys.readouterr().out.strip() == "hi!"


def test_cli_reports_relay_error(capsys):
    from client.cli import send_message

    argv = ["send_message", "--message", "hello"]
    with patch("sys.argv", argv), patch.object(
        send_message.ChatRelayClient,
        "send",
        side_effect=RelayRequestError(429, "Rate limit exceeded. Try again shortly."),
    ):
        with pytest.raises(SystemExit) as exc_info:
            send_message.main()

    assert exc_info.value.code == 1
    assert "ERROR (429)" in capsys.readouterr().err
