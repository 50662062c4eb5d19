"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from dataset_export.models.base import Base
from dataset_export.models.export import Export, ExportStatus, ExportType

__all__ = [
    "Base",
    "Export",
    "ExportStatus",
    "ExportType",
]
