from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from folio.symdef.models import EMPTY_DEFINITION, DefinitionSource, ResolvedDefinition
from folio.symdef.patterns import LOOSE_PATTERN, build_strict_pattern, find_quotes


class DefinitionExtractor:
    """
    Mines a document for annotated definitions tied to specific usages.

    Stateless: every call to `extract` starts from scratch, so the same input
    always yields the same output.
    """

    def extract(
        self, sources: Iterable[DefinitionSource], document: str
    ) -> List[ResolvedDefinition]:
        document = document or ""
        resolved: List[ResolvedDefinition] = []
        # name -> usages already resolved in this pass
        seen: Dict[str, Set[str]] = defaultdict(set)

        for source in sources or []:
            search_space = self._build_search_space(source.def_block, document)
            for raw_usage in source.usages:
                usage = raw_usage.strip()
                if usage in seen[source.name]:
                    logger.debug(f"Skipping repeated usage '{usage}' of '{source.name}'.")
                    continue
                seen[source.name].add(usage)

                matches = self._find_candidates(source.name, usage, search_space)
                if matches:
                    definition = matches[len(resolved) % len(matches)]
                else:
                    definition = EMPTY_DEFINITION
                resolved.append(
                    ResolvedDefinition(name=source.name, usage=usage, definition=definition)
                )

        empty_count = sum(1 for r in resolved if r.is_empty)
        logger.info(
            f"Resolved {len(resolved)} definitions ({empty_count} without a match)."
        )
        return resolved

    def _build_search_space(self, def_block: Optional[str], document: str) -> str:
        """The entry's own block comes first so its matches lead the candidate pool."""
        if def_block:
            return f"{def_block}\n{document}"
        return document

    def _find_candidates(self, name: str, usage: str, search_space: str) -> List[str]:
        strict_matches = find_quotes(build_strict_pattern(name, usage), search_space)
        if strict_matches:
            logger.debug(
                f"Found {len(strict_matches)} cited definitions for '{name}' / '{usage}'."
            )
            return strict_matches

        loose_matches = find_quotes(LOOSE_PATTERN, search_space)
        if loose_matches:
            logger.debug(
                f"No citation for '{name}' / '{usage}'; falling back to {len(loose_matches)} annotated quotes."
            )
        return loose_matches


def extract_definitions(
    sources: Iterable[DefinitionSource], document: str
) -> List[ResolvedDefinition]:
    """Convenience wrapper around `DefinitionExtractor.extract`."""
    return DefinitionExtractor().extract(sources, document)
