"""
Domain models for typeprobe.

Defines the `simple` table as a SQLAlchemy declarative model, the validated
seed rows written by the seeder, and the result shapes the runners bind query
output to. The raw row shapes are declarations only: nothing forces the
database to return what they claim.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Simple(Base):
    """
    Representation of a single row in the `simple` table.
    """

    __tablename__ = "simple"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"Simple(id={self.id} name={self.name!r} age={self.age!r})"


class SeedRecord(BaseModel):
    """
    A row the seeder inserts into `simple`.
    """

    name: str = Field(..., description="Non-null text column.")
    age: Optional[int] = Field(None, description="Nullable integer column.")

    model_config = {
        "frozen": True,
        "strict": True,
    }


SEED_DATA: tuple[SeedRecord, ...] = (
    SeedRecord(name="a", age=1),
    SeedRecord(name="b", age=None),
)


class SumFields(BaseModel):
    age: Optional[int] = None


class AggregateResult(BaseModel):
    """
    Result of `sum(age)` through the ORM, serialized as ``{"_sum": {"age": ...}}``.

    `age` is None when the table is empty or every age is null.
    """

    sum_: SumFields = Field(default_factory=SumFields, alias="_sum")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class QueryIntResult(BaseModel):
    """Declared shape of a raw row whose `mySum` is claimed to be an integer."""

    my_sum: int = Field(..., alias="mySum")

    model_config = {"populate_by_name": True}


class QueryStrResult(BaseModel):
    """Declared shape of a raw row whose `mySum` is claimed to be a string."""

    my_sum: str = Field(..., alias="mySum")

    model_config = {"populate_by_name": True}


__all__ = [
    "AggregateResult",
    "Base",
    "QueryIntResult",
    "QueryStrResult",
    "SEED_DATA",
    "SeedRecord",
    "Simple",
    "SumFields",
]
