from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMPTY_DEFINITION = "empty"


class DefinitionSource(BaseModel):
    """One lexical entry as reported by the content service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    usages: List[str] = Field(default_factory=list)
    def_block: Optional[str] = Field(default=None, alias="defBlock")

    @field_validator("usages", mode="before")
    @classmethod
    def _none_means_no_usages(cls, value):
        # Upstream sometimes sends `null` or omits the list entirely.
        if value is None:
            return []
        return value


@dataclass
class ResolvedDefinition:
    """A definition resolved for one (name, usage) occurrence."""

    name: str
    usage: str
    definition: str

    @property
    def is_empty(self) -> bool:
        return self.definition == EMPTY_DEFINITION

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "usage": self.usage,
            "def": self.definition,
        }
