import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base

SCORE_TYPE = Numeric(4, 2, asdecimal=False)

# casefold() can expand a character (e.g. "ß" -> "ss"), so the key may outgrow full_name.
NAME_KEY_LENGTH = 765


def casefold_name(full_name: str) -> str:
    return full_name.casefold()


class Participant(Base):
    __tablename__ = "participants"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Case-insensitive uniqueness key; SQL lower() only folds ASCII on SQLite.
    name_key: Mapped[str] = mapped_column(
        String(NAME_KEY_LENGTH), unique=True, index=True, nullable=False
    )
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    first_semester: Mapped[float] = mapped_column(SCORE_TYPE, nullable=False)
    second_semester: Mapped[float] = mapped_column(SCORE_TYPE, nullable=False)
    final_average: Mapped[float] = mapped_column(SCORE_TYPE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
