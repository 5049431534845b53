"""Tests for replaying stored messages as model context."""

from chaat.models.chat import ChatMessage
from chaat.models.payload import (
    ImagePayload,
    LocationPayload,
    StickerPayload,
    TextPayload,
    TransferPayload,
)
from chaat.services.chat.history import Turn, encode_history
from chaat.services.chat.stickers import StickerSet

STICKERS = StickerSet({"happy_cat": "sticker_1"})


def _msg(role, payload, ts=1):
    return ChatMessage.build(
        id=f"msg_{ts}", character_id="char_test", role=role, payload=payload, timestamp=ts
    )


def _encode(*messages):
    return encode_history(messages, "Mochi", STICKERS)


def test_text_passes_through_verbatim():
    assert _encode(_msg("user", TextPayload(content="hi *there*"))) == [
        Turn(role="user", text="hi *there*")
    ]


def test_model_role_kept():
    assert _encode(_msg("model", TextPayload(content="meow"))) == [Turn(role="model", text="meow")]


def test_sticker_named_through_lookup():
    turns = _encode(
        _msg("user", StickerPayload(sticker_id="sticker_1")),
        _msg("model", StickerPayload(sticker_id="gone")),
    )
    assert turns == [
        Turn(role="user", text="[User sent a sticker: happy_cat]"),
        Turn(role="model", text="[Mochi sent a sticker: sticker]"),
    ]


def test_transfer_direction_and_two_decimals():
    turns = _encode(
        _msg("user", TransferPayload(amount=5, notes="lunch")),
        _msg("model", TransferPayload(amount=8.888)),
    )
    assert turns == [
        Turn(role="user", text="[User sent you a transfer of ¥5.00]"),
        Turn(role="model", text="[Mochi received a transfer of ¥8.89]"),
    ]


def test_image_and_location():
    turns = _encode(
        _msg("user", ImagePayload(description="my new bike")),
        _msg("model", LocationPayload(name="the park")),
    )
    assert turns == [
        Turn(role="user", text="[User sent an image: my new bike]"),
        Turn(role="model", text="[Mochi sent a location: the park]"),
    ]


def test_blank_messages_dropped():
    turns = _encode(
        _msg("user", TextPayload(content="hello"), ts=1),
        _msg("model", TextPayload(content=""), ts=2),
        _msg("model", TextPayload(content="   \n"), ts=3),
        _msg("model", TextPayload(content="hey"), ts=4),
    )
    assert [t.text for t in turns] == ["hello", "hey"]


def test_order_preserved():
    messages = [_msg("user" if i % 2 else "model", TextPayload(content=str(i)), ts=i) for i in range(6)]
    assert [t.text for t in _encode(*messages)] == [str(i) for i in range(6)]


def test_user_name_configurable():
    turns = encode_history(
        [
            _msg("user", StickerPayload(sticker_id="sticker_1"), ts=1),
            _msg("user", TransferPayload(amount=2), ts=2),
        ],
        "Mochi",
        STICKERS,
        user_name="Alex",
    )
    assert [t.text for t in turns] == [
        "[Alex sent a sticker: happy_cat]",
        "[Alex sent you a transfer of ¥2.00]",
    ]
