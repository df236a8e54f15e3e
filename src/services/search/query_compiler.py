import logging
import re
from typing import Any, Dict, List, Optional

from src.exceptions import ConfigurationError
from src.schemas.configuration import FilterRule, TypeConfiguration
from src.services.indexing.transform import transform

logger = logging.getLogger(__name__)


class QueryCompiler:
    """
    Compiles a raw search string into an OpenSearch bool query.

    Builds the query from a type's filters:
    - Pattern filters extract their values from the raw string with a regex
    - Several values of one pattern filter are OR'd in a nested should
    - Catch-all filters receive whatever text the pattern filters left over
    """

    def __init__(self, filters: Dict[str, FilterRule]):
        """
        Initialize query compiler.

        Args:
            filters: Filter rules keyed by name, in declaration order
        """
        self.filters = filters

    def compile(self, query: Optional[str]) -> Optional[Dict[str, Any]]:
        """Compile the raw query. Returns None for an empty or blank query."""
        logger.debug(f"Query: {query}")
        if not query or not query.strip():
            return None

        bool_query: Dict[str, Any] = {}
        remaining = query
        catch_all_filters: List[FilterRule] = []

        for name, rule in self.filters.items():
            if not rule.is_pattern:
                catch_all_filters.append(rule)
                continue

            pattern = self._compile_pattern(rule)
            # Matching always runs against the original query, only the leftover text shrinks
            values = self._extract_values(rule, pattern, query)
            if not values:
                continue

            logger.debug(f"Applying filter: {name}")
            fragment = self._build_clause(rule, values)
            logger.debug(fragment)
            append(bool_query, fragment)
            remaining = pattern.sub("", remaining)

        remaining = remaining.strip()
        if remaining:
            for rule in catch_all_filters:
                fragment = self._build_clause(rule, [remaining])
                logger.debug(fragment)
                append(bool_query, fragment)

        return {"bool": bool_query}

    def _compile_pattern(self, rule: FilterRule) -> re.Pattern:
        try:
            pattern = re.compile(rule.regex)
        except re.error as e:
            raise ConfigurationError(f"Invalid filter regex '{rule.regex}': {e}") from e
        if rule.regex_group < 0 or rule.regex_group > pattern.groups:
            raise ConfigurationError(f"The regex '{rule.regex}' has no group {rule.regex_group}")
        return pattern

    def _extract_values(self, rule: FilterRule, pattern: re.Pattern, query: str) -> List[str]:
        values = [
            match.group(rule.regex_group)
            for match in pattern.finditer(query)
            if match.group(rule.regex_group) is not None
        ]
        # A whole-match filter only contributes its first match
        if rule.regex_group == 0:
            return values[:1]
        return values

    def _build_clause(self, rule: FilterRule, values: List[str]) -> Dict[str, Any]:
        """Build the {clause: [...]} fragment for one filter."""
        query_type = rule.query_type.lower()
        leaves = []
        for value in values:
            new_value: Any = value
            if rule.transform is not None:
                new_value = transform(rule.transform, value)
            leaves.append({query_type: self._build_leaf(rule, query_type, new_value)})

        if len(leaves) == 1:
            return {rule.clause: leaves}
        return {rule.clause: [{"bool": {"should": leaves}}]}

    def _build_leaf(self, rule: FilterRule, query_type: str, value: Any) -> Dict[str, Any]:
        if query_type == "multi_match":
            return self._build_multi_match(rule, value)
        if query_type == "range":
            return self._build_range(rule, value)
        raise ConfigurationError(f"The following query type is not supported: {rule.query_type}")

    def _build_multi_match(self, rule: FilterRule, value: Any) -> Dict[str, Any]:
        if rule.fields is None:
            raise ConfigurationError("A multi_match filter requires a list of fields")
        return {"query": value, "fields": list(rule.fields)}

    def _build_range(self, rule: FilterRule, value: Any) -> Dict[str, Any]:
        if not rule.field or not rule.operator:
            raise ConfigurationError("A range filter requires a field and an operator")
        return {rule.field: {rule.operator: value}}


def append(parent: Dict[str, Any], child: Optional[Dict[str, Any]]) -> None:
    """Merge a {clause: [...]} fragment into an accumulated bool query."""
    if not child:
        return
    for clause, items in child.items():
        if clause not in parent:
            parent[clause] = items
        elif isinstance(parent[clause], list):
            parent[clause].extend(items)
        else:
            raise ConfigurationError("Unsupported append operation.")


def compile_query(configuration: TypeConfiguration, query: Optional[str]) -> Optional[Dict[str, Any]]:
    """Helper function to compile a raw query with a type configuration."""
    return QueryCompiler(configuration.filters).compile(query)


def build_search_body(
    query: Optional[Dict[str, Any]],
    from_: int = 0,
    size: int = 10,
    append_to_query: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the complete search request body."""
    body: Dict[str, Any] = {"from": from_, "size": size}
    if query is not None:
        body["query"] = query
    if append_to_query:
        body.update(append_to_query)
    return body
