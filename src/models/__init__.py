from .index_configuration import IndexConfiguration

__all__ = ["IndexConfiguration"]
