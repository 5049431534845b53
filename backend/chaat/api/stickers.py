"""REST API for the user's custom stickers."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from chaat.core.database import get_session
from chaat.models.chat import CustomSticker

router = APIRouter()


class StickerCreate(BaseModel):
    # The model writes this name inside [sticker:NAME], so no brackets
    name: str = Field(min_length=1, pattern=r"^[^\[\]]+$")
    image_url: str = ""


@router.get("/")
async def list_stickers(session: Session = Depends(get_session)):
    stickers = session.exec(select(CustomSticker).order_by(CustomSticker.id)).all()
    return [{"id": s.id, "name": s.name, "image_url": s.image_url} for s in stickers]


@router.post("/")
async def create_sticker(body: StickerCreate, session: Session = Depends(get_session)):
    name = body.name.strip()
    existing = session.exec(select(CustomSticker).where(CustomSticker.name == name)).first()
    if existing:
        raise HTTPException(status_code=409, detail="A sticker with this name already exists")

    sticker = CustomSticker(id=f"sticker_{uuid.uuid4().hex[:12]}", name=name, image_url=body.image_url)
    session.add(sticker)
    session.commit()
    session.refresh(sticker)
    return {"id": sticker.id, "status": "created"}


@router.delete("/{sticker_id}")
async def delete_sticker(sticker_id: str, session: Session = Depends(get_session)):
    sticker = session.get(CustomSticker, sticker_id)
    if not sticker:
        raise HTTPException(status_code=404, detail="Sticker not found")
    session.delete(sticker)
    session.commit()
    return {"status": "deleted"}
