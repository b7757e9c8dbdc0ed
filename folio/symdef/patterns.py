import re
from typing import List

# Annotation keyword: "N.B" with an optional trailing period.
ANNOTATION_KEYWORD = r"N\.B\.?"

# Names arrive with markdown escapes (e.g. "\*Aleph"); the citation token never carries them.
ESCAPE_MARKER = "\\"

MIN_QUOTE_LENGTH = 4
MAX_QUOTE_LENGTH = 200

LOOSE_PATTERN = re.compile(
    ANNOTATION_KEYWORD
    + r'\s*"([^\[\]]{%d,%d}?)"' % (MIN_QUOTE_LENGTH, MAX_QUOTE_LENGTH)
)


def citation_name(name: str) -> str:
    """Returns the headword as it appears inside a citation token."""
    return name.replace(ESCAPE_MARKER, "")


def citation_usage(usage: str) -> str:
    """
    Filters a usage string down to its alphanumeric characters.

    Examples:
        - 'aleph' -> 'aleph'
        - ' al-eph! ' -> 'aleph'
    """
    return "".join(ch for ch in usage if ch.isalnum())


def build_strict_pattern(name: str, usage: str) -> "re.Pattern[str]":
    """
    Builds the citation-linked pattern for one (name, usage) pair.

    Matches e.g. 'N.B. "the first letter" [^Alephaleph]': the quoted span may
    not contain brackets or quotes, and must be followed by a citation token
    made of the unescaped name and the alphanumeric usage.
    """
    token = re.escape(citation_name(name) + citation_usage(usage))
    return re.compile(
        ANNOTATION_KEYWORD
        + r'\s*"([^\[\]"]{%d,%d})"' % (MIN_QUOTE_LENGTH, MAX_QUOTE_LENGTH)
        + r"\s*\[\^"
        + token
        + r"\]"
    )


def find_quotes(pattern: "re.Pattern[str]", text: str) -> List[str]:
    """Collects the quoted span of every match, in document order."""
    return [match.group(1) for match in pattern.finditer(text)]
