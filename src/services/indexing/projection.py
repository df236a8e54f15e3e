import copy
import logging
from typing import Any, Dict, List, Optional

from src.schemas.configuration import Mapping, SetRule, TypeConfiguration

from . import path_value
from .transform import transform

logger = logging.getLogger(__name__)


class DocumentProjector:
    """
    Applies a type's ``mapping`` to a document before it is indexed.

    ``$set`` rules derive new fields from path expressions evaluated against the
    document as it was before projection started; ``$unset`` rules then remove
    fields. The document is modified in place.
    """

    def __init__(self, mapping: Optional[Mapping]):
        self.mapping = mapping

    def project(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if self.mapping is None:
            logger.debug("The mapping configuration has not been provided.")
            return document

        if self.mapping.set_ is not None:
            self._set_elements(document, self.mapping.set_)
        else:
            logger.debug("The $set configuration has not been provided.")

        if self.mapping.unset is not None:
            self._unset_elements(document, self.mapping.unset)
        else:
            logger.debug("The $unset configuration has not been provided.")

        return document

    def _set_elements(self, document: Dict[str, Any], rules: Dict[str, SetRule]) -> None:
        snapshot = copy.deepcopy(document)
        for destination, rule in rules.items():
            value: Any = self._field_value(snapshot, rule)
            if rule.transform is not None:
                value = transform(rule.transform, value)

            parent_path, _, field_name = destination.rpartition(".")
            container = path_value.get_or_create(document, parent_path)
            container[field_name] = value

    def _unset_elements(self, document: Dict[str, Any], paths: List[str]) -> None:
        for path in paths:
            if not path_value.unset(document, path):
                logger.debug(f"Nothing to unset at {path}")

    def _field_value(self, snapshot: Dict[str, Any], rule: SetRule) -> str:
        parts: List[str] = []
        for expression in rule.fields:
            value = path_value.read(snapshot, expression)
            if value is path_value.NOT_FOUND:
                logger.debug(f"No value found for {expression}")
                continue
            self._append_value(parts, value, rule.separator)
        return "".join(parts)

    def _append_value(self, parts: List[str], value: Any, separator: str) -> None:
        if isinstance(value, list):
            for item in value:
                self._append_value(parts, item, separator)
        elif isinstance(value, str) and value:
            # The separator follows every value, including the last one
            parts.append(value)
            parts.append(separator)


def project_document(document: Dict[str, Any], configuration: TypeConfiguration) -> Dict[str, Any]:
    """Helper function to project a document with a type configuration."""
    return DocumentProjector(configuration.mapping).project(document)
