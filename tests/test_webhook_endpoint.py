from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from paperbot.config import Settings, get_settings
from paperbot.dependencies import get_dispatcher, get_store
from paperbot.main import app
from paperbot.services.dispatcher import GREETING_TEXT, TOPIC_PROMPT
from paperbot.services.errors import BackendError
from paperbot.services.state_machine import ConversationState
from tests.conftest import make_envelope


@pytest.fixture
def client(dispatcher, store):
    app.dependency_overrides[get_settings] = lambda: Settings(verify_token="secret-token")
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestWebhookVerification:
    def test_subscribe_with_correct_token_returns_challenge(self, client):
        response = client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "secret-token", "hub.challenge": "1158201444"},
        )

        assert response.status_code == 200
        assert response.text == "1158201444"

    def test_plain_parameter_names_accepted(self, client):
        response = client.get(
            "/webhook",
            params={"mode": "subscribe", "verify_token": "secret-token", "challenge": "abc"},
        )

        assert response.status_code == 200
        assert response.text == "abc"

    def test_wrong_token_forbidden(self, client):
        response = client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "1158201444"},
        )

        assert response.status_code == 403
        assert "1158201444" not in response.text

    def test_non_ascii_wrong_token_forbidden(self, client):
        response = client.get(
            "/webhook",
            params={"hub.mode": "subscribe", "hub.verify_token": "sécret", "hub.challenge": "42"},
        )

        assert response.status_code == 403
        assert "42" not in response.text

    def test_wrong_mode_forbidden(self, client):
        response = client.get(
            "/webhook",
            params={"hub.mode": "unsubscribe", "hub.verify_token": "secret-token", "hub.challenge": "x"},
        )

        assert response.status_code == 403

    def test_missing_parameters_answered_without_challenge(self, client):
        response = client.get("/webhook", params={"hub.challenge": "1158201444"})

        assert response.status_code == 400
        assert "1158201444" not in response.text


class TestWebhookDelivery:
    def test_text_message_greets_new_user(self, client, messenger):
        response = client.post("/webhook", json=make_envelope(text="hello"))

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "OK"}
        messenger.send_choices.assert_awaited_once()
        assert messenger.send_choices.await_args.args[1] == GREETING_TEXT

    def test_button_reply_sets_state(self, client, messenger, store):
        response = client.post("/webhook", json=make_envelope(choice_id="get_topics"))

        assert response.status_code == 200
        messenger.send_text.assert_awaited_once_with("15551234567", TOPIC_PROMPT)
        assert store.get_state("15551234567") == ConversationState.AWAITING_TOPIC

    def test_redelivery_is_acknowledged_once(self, client, messenger):
        payload = make_envelope(message_id="wamid.retry", text="hello")

        first = client.post("/webhook", json=payload)
        second = client.post("/webhook", json=payload)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["message"] == "Message already processed"
        assert messenger.send_choices.await_count == 1

    def test_backend_failure_still_returns_200(self, client, messenger, store, journal_searcher):
        store.set_state("15551234567", ConversationState.AWAITING_JOURNAL_QUERY)
        journal_searcher.side_effect = BackendError("API Error: 500", status_code=500)

        response = client.post("/webhook", json=make_envelope(text="quantum"))

        assert response.status_code == 200
        messenger.send_text.assert_awaited_once()
        assert store.get_state("15551234567") == ConversationState.NO_PENDING

    def test_status_callback_without_messages(self, client, messenger):
        payload = make_envelope(text="ignored")
        payload["entry"][0]["changes"][0]["value"].pop("messages")
        payload["entry"][0]["changes"][0]["value"]["statuses"] = [{"id": "wamid.out", "status": "delivered"}]

        response = client.post("/webhook", json=payload)

        assert response.status_code == 200
        assert response.json()["message"] == "No actionable content"
        messenger.send_text.assert_not_awaited()
        messenger.send_choices.assert_not_awaited()

    def test_invalid_json_rejected(self, client):
        response = client.post("/webhook", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda p: p.pop("object"),
            lambda p: p["entry"][0]["changes"][0]["value"]["messages"][0].pop("from"),
            lambda p: p["entry"][0]["changes"][0]["value"]["messages"][0].pop("id"),
        ],
    )
    def test_malformed_envelope_rejected(self, client, messenger, mutate):
        payload = make_envelope(text="hello")
        mutate(payload)

        response = client.post("/webhook", json=payload)

        assert response.status_code == 400
        messenger.send_choices.assert_not_awaited()

    def test_unrecognised_interactive_reply_is_acknowledged(self, client, messenger):
        payload = make_envelope(message_id="wamid.flow")
        message = payload["entry"][0]["changes"][0]["value"]["messages"][0]
        message["type"] = "interactive"
        message["interactive"] = {"type": "nfm_reply", "nfm_reply": {"name": "flow", "response_json": "{}"}}

        response = client.post("/webhook", json=payload)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "OK"}
        messenger.send_choices.assert_awaited_once()

    def test_unexpected_exception_returns_500(self, client):
        failing = Mock()
        failing.dispatch = AsyncMock(side_effect=RuntimeError("boom"))
        app.dependency_overrides[get_dispatcher] = lambda: failing

        response = client.post("/webhook", json=make_envelope(text="hello"))

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal error"}


class TestHealth:
    def test_health_reports_store_counters(self, client, store):
        store.mark_processed("wamid.1")

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "pending_users": 0, "processed_message_ids": 1}
