from sqlmodel import Session, SQLModel, create_engine, select

from chaat.core.config import settings

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)

INITIAL_CHARACTERS = [
    {
        "id": "char1",
        "name": "Gemini Assistant",
        "avatar_url": "https://api.dicebear.com/8.x/bottts/svg?seed=gemini",
        "system_instruction": "You are a helpful and friendly assistant named Gemini. Provide clear and concise answers.",
    },
    {
        "id": "char2",
        "name": "Creative Writer",
        "avatar_url": "https://api.dicebear.com/8.x/lorelei/svg?seed=writer",
        "system_instruction": "You are an imaginative storyteller. Weave captivating narratives and be highly creative in your responses.",
    },
]


def init_db() -> None:
    from chaat.models.chat import Character  # noqa: F401 - ensure models are registered

    SQLModel.metadata.create_all(engine)
    seed_characters(engine)


def seed_characters(bind) -> None:
    """Insert the default characters when the table is empty."""
    from chaat.models.chat import Character

    with Session(bind) as session:
        if session.exec(select(Character)).first() is not None:
            return
        for data in INITIAL_CHARACTERS:
            session.add(Character(**data))
        session.commit()


def get_session():
    with Session(engine) as session:
        yield session
