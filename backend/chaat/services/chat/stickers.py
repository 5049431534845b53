"""Known sticker lookup shared by the classifier, history encoder and prompt builder."""

from collections.abc import Iterable, Mapping
from typing import Union


class StickerSet:
    """Bidirectional name <-> id lookup over the user's custom stickers.

    Names are what the model sees and writes inside ``[sticker:NAME]``; ids are
    what gets stored in a sticker payload. When built from bare names the name
    doubles as the id.
    """

    def __init__(self, names_to_ids: Mapping[str, str] | None = None):
        self._by_name: dict[str, str] = dict(names_to_ids or {})
        self._by_id: dict[str, str] = {sid: name for name, sid in self._by_name.items()}

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "StickerSet":
        return cls({name: name for name in names})

    @classmethod
    def from_stickers(cls, stickers: Iterable) -> "StickerSet":
        """Build from ``CustomSticker`` rows (anything with ``id`` and ``name``)."""
        return cls({s.name: s.id for s in stickers})

    @classmethod
    def coerce(cls, value: Union["StickerSet", Iterable[str], None]) -> "StickerSet":
        if isinstance(value, StickerSet):
            return value
        if value is None:
            return cls()
        if isinstance(value, str):
            return cls.from_names([value])
        return cls.from_names(value)

    def id_for(self, name: str) -> str | None:
        return self._by_name.get(name)

    def name_for(self, sticker_id: str) -> str | None:
        return self._by_id.get(sticker_id)

    @property
    def names(self) -> list[str]:
        return list(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
