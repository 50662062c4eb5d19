"""Export model — one requested dataset export and its lifecycle."""

import enum

from sqlalchemy import BigInteger, Index, Integer, LargeBinary, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from dataset_export.models.base import Base

EXPORTED_FILE_FILENAME_MAX_LENGTH = 256


class ExportType(enum.IntEnum):
    """Which builder produces the export file."""

    DATASET = 0
    EXCEL = 1


class ExportStatus(enum.IntEnum):
    """Export lifecycle status. Only moves REQUESTED -> PROCESSING -> DONE."""

    REQUESTED = 0
    PROCESSING = 1
    DONE = 2


class Export(Base):
    """A request to produce a downloadable dataset file.

    Attributes:
        id: Store-assigned identifier.
        requested_by_user_id: Owner of the request.
        request_time: Creation time, epoch milliseconds.
        type: Export file type (dataset archive or spreadsheet).
        expire_time: Epoch milliseconds after which the export is purged; 0 while unfinished.
        filter_options: Opaque encoded image filter, forwarded to the image service as-is.
        status: Lifecycle status.
        exported_file_filename: Object name of the finished file; empty until done.
    """

    __tablename__ = "export_service_export_tab"

    id: Mapped[int] = mapped_column("export_id", Integer, primary_key=True, autoincrement=True)
    requested_by_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    request_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    expire_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    filter_options: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    status: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=ExportStatus.REQUESTED)
    exported_file_filename: Mapped[str] = mapped_column(
        String(EXPORTED_FILE_FILENAME_MAX_LENGTH),
        nullable=False,
        default="",
    )

    __table_args__ = (
        Index(
            "export_service_export_requested_by_user_id_request_time_idx",
            "requested_by_user_id",
            "request_time",
        ),
    )

    def __repr__(self) -> str:
        return f"<Export id={self.id} type={self.type} status={self.status}>"
