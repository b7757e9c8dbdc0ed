from folio.symdef.definition_extractor import DefinitionExtractor, extract_definitions
from folio.symdef.models import EMPTY_DEFINITION, DefinitionSource, ResolvedDefinition

__all__ = [
    "EMPTY_DEFINITION",
    "DefinitionExtractor",
    "DefinitionSource",
    "ResolvedDefinition",
    "extract_definitions",
]
