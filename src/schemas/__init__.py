from .configuration import FilterRule, Mapping, SetRule, TransformSpec, TypeConfiguration

__all__ = [
    "FilterRule",
    "Mapping",
    "SetRule",
    "TransformSpec",
    "TypeConfiguration",
]
