import logging
from functools import lru_cache
from typing import Any, Dict

from jsonpath_ng.ext import parse as parse_jsonpath
from jsonpath_ng.exceptions import JSONPathError
from src.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class _NotFound:
    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


# Returned by read() when an expression matches nothing
NOT_FOUND = _NotFound()


@lru_cache(maxsize=256)
def _compile(expression: str):
    try:
        return parse_jsonpath(expression)
    except JSONPathError as e:
        raise ConfigurationError(f"Invalid path expression '{expression}': {e}") from e


def read(document: Any, expression: str) -> Any:
    """
    Read a value out of a document with a JSONPath expression.

    Returns the matched value for a single match, the list of matched values
    when the expression selects several nodes, and NOT_FOUND when nothing matches.
    """
    matches = _compile(expression).find(document)
    if not matches:
        return NOT_FOUND
    if len(matches) == 1:
        return matches[0].value
    return [match.value for match in matches]


def get_or_create(obj: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Walk a dotted path, creating empty objects for missing segments, and return the leaf object."""
    current = obj
    if not path:
        return current
    for segment in path.split("."):
        if segment not in current:
            current[segment] = {}
        elif not isinstance(current[segment], dict):
            raise ConfigurationError(
                f"Cannot create '{path}': segment '{segment}' already holds a non-object value"
            )
        current = current[segment]
    return current


def unset(obj: Dict[str, Any], path: str) -> bool:
    """Remove the field at a dotted path. Returns False when the path does not exist."""
    *parents, leaf = path.split(".")
    current = obj
    for segment in parents:
        current = current.get(segment)
        if not isinstance(current, dict):
            return False
    if leaf in current:
        del current[leaf]
        return True
    return False
