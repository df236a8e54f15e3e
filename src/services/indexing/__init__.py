from .projection import DocumentProjector, project_document
from .transform import transform

__all__ = ["DocumentProjector", "project_document", "transform"]
