"""Tests for the WebSocket chat endpoint."""

import json
from unittest.mock import patch

from sqlmodel import Session, select

from chaat.models.chat import ChatMessage, CustomSticker
from chaat.services.chat.errors import (
    CONFIGURATION_ERROR_TEXT,
    RATE_LIMIT_ERROR_TEXT,
    ConfigurationError,
    RateLimitError,
)
from chaat.services.chat.turns import turn_guard
from tests.conftest import test_engine


def _drain(ws):
    """Collect events until the end marker."""
    events = []
    while True:
        event = ws.receive_json()
        events.append(event)
        if event["type"] in ("end", "error", "busy"):
            return events


def _messages(character_id="char1"):
    with Session(test_engine) as session:
        return session.exec(
            select(ChatMessage)
            .where(ChatMessage.character_id == character_id)
            .order_by(ChatMessage.timestamp)
        ).all()


def test_websocket_connect_disconnect(client):
    """Basic connection and clean disconnect."""
    with client.websocket_connect("/api/chat/ws/char1"):
        pass


def test_turn_event_order(client):
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text("hello")
        events = _drain(ws)

    assert [e["type"] for e in events] == ["user", "placeholder", "started", "final", "end"]
    assert events[0]["message"]["payload"] == {"type": "text", "content": "hello"}
    assert events[1]["message"]["payload"] == {"type": "text", "content": ""}
    assert events[3]["placeholder_id"] == events[1]["message"]["id"]


def test_split_reply_becomes_separate_bubbles(client):
    """The separator arrives split across two chunks."""
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text("hi")
        final = next(e for e in _drain(ws) if e["type"] == "final")

    assert [m["payload"]["content"] for m in final["messages"]] == ["Hi there!", "How can I help?"]


def test_messages_persisted_in_order(client):
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text(json.dumps({"content": "save me"}))
        _drain(ws)

    messages = _messages()
    assert [(m.role, m.payload["content"]) for m in messages] == [
        ("user", "save me"),
        ("model", "Hi there!"),
        ("model", "How can I help?"),
    ]
    stamps = [m.timestamp for m in messages]
    assert stamps == sorted(set(stamps))


def test_history_sent_on_second_turn(client, provider):
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text("first")
        _drain(ws)
        ws.send_text("second")
        _drain(ws)

    texts = [t.text for t in provider.requests[1].history]
    assert texts == ["first", "Hi there!", "How can I help?", "second"]


def test_rich_user_payload(client, provider):
    with Session(test_engine) as session:
        session.add(CustomSticker(id="sticker_1", name="happy_cat"))
        session.commit()

    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text(json.dumps({"type": "sticker", "sticker_id": "sticker_1"}))
        events = _drain(ws)

    assert events[0]["message"]["payload"] == {"type": "sticker", "sticker_id": "sticker_1"}
    assert provider.requests[0].history[0].text == "[User sent a sticker: happy_cat]"
    assert "happy_cat" in provider.requests[0].system_instruction


def test_model_tags_classified(client, provider):
    provider.chunks = ["Here|||[transfer:8.88:Good", " luck!]|||[image:a cake]"]
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text("birthday!")
        final = next(e for e in _drain(ws) if e["type"] == "final")

    assert [m["payload"] for m in final["messages"]] == [
        {"type": "text", "content": "Here"},
        {"type": "transfer", "amount": 8.88, "notes": "Good luck!"},
        {"type": "image", "description": "a cake"},
    ]


def test_failed_turn_leaves_one_error_message(client, provider):
    provider.chunks = ["one|||two|||th"]
    provider.error = RateLimitError("429")
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text("go")
        events = _drain(ws)

    failed = next(e for e in events if e["type"] == "failed")
    assert failed["message"]["payload"]["content"] == RATE_LIMIT_ERROR_TEXT
    assert failed["message"]["id"] == failed["placeholder_id"]
    assert events[-1]["type"] == "end"

    models = [m for m in _messages() if m.role == "model"]
    assert [m.payload["content"] for m in models] == [RATE_LIMIT_ERROR_TEXT]


def test_missing_api_key_persists_nothing(client):
    with patch("chaat.api.chat.get_llm_provider", side_effect=ConfigurationError("no key")):
        with client.websocket_connect("/api/chat/ws/char1") as ws:
            ws.send_text("hello")
            event = ws.receive_json()

    assert event == {"type": "error", "detail": CONFIGURATION_ERROR_TEXT}
    assert _messages() == []


def test_unknown_character(client):
    with client.websocket_connect("/api/chat/ws/nobody") as ws:
        ws.send_text("hello")
        assert ws.receive_json() == {"type": "error", "detail": "Character not found"}


def test_invalid_payload_rejected(client):
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        ws.send_text(json.dumps({"type": "transfer", "amount": "lots"}))
        assert ws.receive_json()["type"] == "error"
        ws.send_text(json.dumps({"content": "   "}))
        assert ws.receive_json() == {"type": "error", "detail": "Message is empty"}
        # The connection stays usable
        ws.send_text("hi")
        assert _drain(ws)[-1]["type"] == "end"


def test_busy_when_turn_already_running(client):
    with client.websocket_connect("/api/chat/ws/char1") as ws:
        with turn_guard.hold("char1"):
            ws.send_text("hello")
            assert ws.receive_json() == {"type": "busy"}

    assert _messages() == []
