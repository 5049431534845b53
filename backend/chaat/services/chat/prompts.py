"""System instruction construction for character chats."""

from chaat.models.chat import Character
from chaat.services.chat.stickers import StickerSet
from chaat.services.chat.tags import IMAGE, LOCATION, SEPARATOR, STICKER, TRANSFER, format_tag

CHAT_STYLE_INSTRUCTION = """
# Character Dialogue Guidelines

- Implicit meaning.
- Natural speech that feels like a real person.
  - Char quirks (speech)
  - No dogma or recitation.
  - No jargon, contracts, or rules.
  - **Pauses, hesitations, repetitions** (allowed)
  - Use of onomatopoeia.
- Inarticulate or vague is fine.
- Not required to serve plot: allow rambling, digressions, silence.
- **Everyday trivialities > strict logic.**

---

You are chatting online.
Keep your replies concise and conversational, like text messages.
Do not use action descriptions (like *smiles*) or describe your internal thoughts.
To create a more natural chat flow, you can split your response into multiple short messages.
Use '{separator}' as a separator.

For example:
"Hi there!{separator}How can I help you today?"
"""

AUTO_REPLY_PROMPT = (
    "[SYSTEM_NOTE: The user has not responded for a while. Send a short, in-character "
    "follow-up message to re-engage them. You can ask a question or start a new, related "
    "topic. Do not mention that this is an automated message or a system prompt.]"
)


def build_system_instruction(
    character: Character,
    stickers: StickerSet,
    user_name: str,
    separator: str = SEPARATOR,
) -> str:
    if character.nickname_for_user:
        nickname = (
            f"The user's name is {user_name}, but you should address them as "
            f'"{character.nickname_for_user}".'
        )
    else:
        nickname = f"The user's name is {user_name}."

    sticker = ""
    if stickers:
        sticker = (
            "You can and should use stickers to make the conversation more lively. "
            f"To use one, reply with its name in the format {format_tag(STICKER, 'sticker_name')}. "
            f"Available sticker names are: {', '.join(stickers.names)}. Use them when it feels natural!"
        )

    transfer = (
        "You can send the user a 'transfer' of money. To do this, reply with the format "
        f"{format_tag(TRANSFER, 'AMOUNT', 'NOTES')}, where AMOUNT is a number (e.g., 10.50) and "
        f"NOTES are optional text. For example: {format_tag(TRANSFER, '20', 'Here is the money I owe you')}. "
        "Only generate a transfer when it's a logical part of the conversation."
    )
    descriptive = (
        "You can also send descriptive images and locations. To send an image, use the format "
        f"{format_tag(IMAGE, 'A description of the image')}. To send a location, use "
        f"{format_tag(LOCATION, 'Name of the location')}. "
        f"A tag must be sent as its own message, separated from other text with '{separator}'."
    )

    style = CHAT_STYLE_INSTRUCTION.format(separator=separator)
    parts = [character.system_instruction, nickname, style, sticker, transfer, descriptive]
    return " ".join(p for p in parts if p)
