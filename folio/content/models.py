from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from folio.symdef.models import DefinitionSource


class ContentRecord(BaseModel):
    """
    The per-query record returned by the content service.

    Only `lexDefs` and the document text are consumed by the engines; the
    remaining fields are carried for the session's status display. Unknown
    fields are ignored and missing ones fall back to neutral defaults.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    term: Optional[str] = None
    coordinate: str = ""
    potency: Union[int, float] = 0
    valency: Union[int, float] = 0
    concentration: Union[int, float] = 0
    links: List[str] = Field(default_factory=list)
    markdown: Optional[str] = None
    fallback: Optional[str] = None
    lex_defs: List[DefinitionSource] = Field(default_factory=list, alias="lexDefs")

    @field_validator("coordinate", mode="before")
    @classmethod
    def _coordinate_or_empty(cls, value):
        return value or ""

    @field_validator("potency", "valency", "concentration", mode="before")
    @classmethod
    def _number_or_zero(cls, value):
        return value or 0

    @field_validator("links", "lex_defs", mode="before")
    @classmethod
    def _list_or_empty(cls, value):
        return value or []

    @property
    def document(self) -> Optional[str]:
        """The text to mine and reveal: markdown when present, else the fallback."""
        return self.markdown or self.fallback or None


@dataclass
class Book:
    """A book opened during a session."""

    title: str
    coordinate: str
    potency: Union[int, float]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "coordinate": self.coordinate,
            "potency": self.potency,
        }
