from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.exceptions import ConfigurationError


class TransformSpec(BaseModel):
    """Typed conversion applied to an extracted string value."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    from_: str = Field(alias="from")
    to: str
    format: Optional[str] = None
    regex: Optional[str] = None
    replacement: str = ""


class FilterRule(BaseModel):
    """
    A single search filter.

    With a ``regex`` it is a pattern filter that pulls its values out of the raw
    query; without one it is a catch-all filter fed with whatever text is left.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    regex: Optional[str] = None
    regex_group: int = Field(default=0, alias="regexGroup")
    clause: str
    query_type: str = Field(alias="queryType")
    fields: Optional[List[str]] = None
    field: Optional[str] = None
    operator: Optional[str] = None
    transform: Optional[TransformSpec] = None

    @property
    def is_pattern(self) -> bool:
        return self.regex is not None


class SetRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    fields: List[str] = Field(default_factory=list)
    separator: str = ""
    transform: Optional[TransformSpec] = None


class Mapping(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    set_: Optional[Dict[str, SetRule]] = Field(default=None, alias="$set")
    unset: Optional[List[str]] = Field(default=None, alias="$unset")


class StoreLocation(BaseModel):
    model_config = ConfigDict(extra="allow")

    database: Optional[str] = None
    collection: Optional[str] = None


class IndexLocation(BaseModel):
    model_config = ConfigDict(extra="allow")

    index: Optional[str] = None
    type: Optional[str] = None


class TypeConfiguration(BaseModel):
    """Per object type configuration, as stored in the configuration store."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    mongo: StoreLocation = Field(default_factory=StoreLocation)
    elastic: IndexLocation = Field(default_factory=IndexLocation)
    filters: Dict[str, FilterRule] = Field(default_factory=dict)
    mapping: Optional[Mapping] = None
    append_to_query: Optional[Dict[str, Any]] = Field(default=None, alias="appendToQuery")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TypeConfiguration":
        """Validate a raw configuration document, raising ConfigurationError on failure."""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def require_database(self) -> Tuple[str, str]:
        if not self.mongo.database:
            raise ConfigurationError("The database has not been provided in the configuration file.")
        if not self.mongo.collection:
            raise ConfigurationError("The collection has not been provided in the configuration file.")
        return self.mongo.database, self.mongo.collection

    def require_index(self) -> str:
        if not self.elastic.index:
            raise ConfigurationError("The index has not been provided in the configuration file.")
        return self.elastic.index

    def require_type(self) -> str:
        if not self.elastic.type:
            raise ConfigurationError("The type has not been provided in the configuration file.")
        return self.elastic.type
