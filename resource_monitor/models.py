"""
SQLAlchemy ORM models.

We only need a single table:

- ResourceUsage: one row per (monitored_path, checked_at) sample
"""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String

from resource_monitor.database import Base


class ResourceUsage(Base):
    """
    One measurement snapshot of a monitored directory.

    Rows are only ever inserted by the store; nothing updates or deletes
    them.
    """

    __tablename__ = "resource_usage"

    id = Column(Integer, primary_key=True, index=True)

    monitored_path = Column(String(1024), nullable=False)

    file_count = Column(BigInteger, nullable=False)
    disk_usage_mb = Column(BigInteger, nullable=False)
    available_inodes = Column(BigInteger, nullable=False)
    available_space_mb = Column(BigInteger, nullable=False)

    # When we took the measurement (naive UTC)
    checked_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_resource_usage_path_checked_at", "monitored_path", "checked_at"),
    )
