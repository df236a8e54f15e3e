import logging
import re
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Callable, List, Optional, Tuple, Union

from dateutil import tz
from src.exceptions import ConfigurationError, TransformValueError
from src.schemas.configuration import TransformSpec

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=tz.UTC)

# Date pattern letters (yyyyMMdd style) -> strptime directives, keyed by (letter, run length)
_DATE_DIRECTIVES = {
    ("y", 2): "%y",
    ("y", None): "%Y",
    ("M", 1): "%m",
    ("M", 2): "%m",
    ("M", 3): "%b",
    ("M", None): "%B",
    ("d", None): "%d",
    ("H", None): "%H",
    ("h", None): "%I",
    ("m", None): "%M",
    ("s", None): "%S",
    ("S", None): "%f",
    ("a", None): "%p",
    ("E", 4): "%A",
    ("E", None): "%a",
    ("D", None): "%j",
    ("Z", None): "%z",
    ("X", None): "%z",
    ("z", None): "%Z",
}

_PATTERN_TOKENS = re.compile(r"'(?:[^']|'')*'|([A-Za-z])\1*|[^A-Za-z']+")
_GROUP_REFERENCE = re.compile(r"\$(?:\{(\w+)\}|(\d+))")
# Prefix of the ValueError strptime raises when the format matched only the start of the input
_UNCONVERTED_DATA = "unconverted data remains: "


@lru_cache(maxsize=64)
def to_strptime_format(pattern: str) -> str:
    """
    Translate a date pattern such as ``yyyy-MM-dd'T'HH:mm:ss`` into a strptime format.

    Patterns that already contain ``%`` directives are returned unchanged.
    """
    if "%" in pattern:
        return pattern

    parts = []
    for token in _PATTERN_TOKENS.finditer(pattern):
        text = token.group(0)
        if text.startswith("'"):
            literal = "'" if text == "''" else text[1:-1].replace("''", "'")
            parts.append(literal.replace("%", "%%"))
        elif token.group(1):
            letter, length = token.group(1), len(text)
            directive = _DATE_DIRECTIVES.get((letter, length)) or _DATE_DIRECTIVES.get((letter, None))
            if directive is None:
                raise ConfigurationError(f"Unsupported date pattern letter '{letter}' in '{pattern}'")
            parts.append(directive)
        else:
            parts.append(text.replace("%", "%%"))
    return "".join(parts)


def _compile_replacement(replacement: str) -> Callable[[re.Match], str]:
    """Build a substitution function for $n / ${name} group references; a backslash escapes the next character."""
    # Literal text is kept as str, group references as 1-tuples
    parts: List[Union[str, Tuple[Union[int, str]]]] = []
    literal: List[str] = []
    i = 0
    while i < len(replacement):
        char = replacement[i]
        if char == "\\" and i + 1 < len(replacement):
            literal.append(replacement[i + 1])
            i += 2
            continue
        reference = _GROUP_REFERENCE.match(replacement, i) if char == "$" else None
        if reference:
            if literal:
                parts.append("".join(literal))
                literal = []
            name = reference.group(1) or reference.group(2)
            parts.append((int(name) if name.isdigit() else name,))
            i = reference.end()
            continue
        literal.append(char)
        i += 1
    if literal:
        parts.append("".join(literal))

    def expand(match: re.Match) -> str:
        return "".join(part if isinstance(part, str) else (match.group(part[0]) or "") for part in parts)

    return expand


def transform(spec: TransformSpec, value: str) -> Any:
    """Convert an extracted string according to a transform configuration."""
    source = spec.from_.lower()
    if source == "date":
        return _transform_date(spec, value)
    if source == "string":
        return _transform_string(spec, value)
    raise ConfigurationError(f"Impossible to transform the following type: {spec.from_}")


def _transform_date(spec: TransformSpec, value: str) -> Optional[int]:
    if spec.to.lower() != "timestamp":
        raise ConfigurationError(f"Impossible to transform a date to the following type: {spec.to}")
    if not value:
        return None
    if not spec.format:
        raise ConfigurationError("A date transform requires a format")

    try:
        parsed = _parse_leading_date(value, to_strptime_format(spec.format))
    except ValueError as e:
        logger.error(f"Unable to parse date '{value}' with format '{spec.format}': {e}")
        raise TransformValueError(f"Unparseable date: \"{value}\" ({e})") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz.UTC)
    return (parsed - EPOCH) // timedelta(milliseconds=1)


def _parse_leading_date(value: str, date_format: str) -> datetime:
    """Parse the date at the start of value; trailing text after a complete match is ignored."""
    try:
        return datetime.strptime(value, date_format)
    except ValueError as e:
        message = str(e)
        if not message.startswith(_UNCONVERTED_DATA):
            raise
        remainder = message[len(_UNCONVERTED_DATA):]
        logger.debug(f"Ignoring trailing text after date '{value}': {remainder}")
        return datetime.strptime(value[: len(value) - len(remainder)], date_format)


def _transform_string(spec: TransformSpec, value: str) -> str:
    if spec.to.lower() != "string":
        raise ConfigurationError(f"Impossible to transform a string to the following type: {spec.to}")
    if spec.regex is None:
        return value
    try:
        pattern = re.compile(spec.regex)
    except re.error as e:
        raise ConfigurationError(f"Invalid transform regex '{spec.regex}': {e}") from e
    try:
        return pattern.sub(_compile_replacement(spec.replacement), value)
    except IndexError as e:
        raise ConfigurationError(f"Invalid group reference in replacement '{spec.replacement}': {e}") from e
