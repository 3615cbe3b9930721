from sqlmodel import Field, SQLModel


class Movie(SQLModel, table=True):
    """A movie in the surveyed catalog."""

    __tablename__ = "movies"

    id: int | None = Field(default=None, primary_key=True)
    title: str
