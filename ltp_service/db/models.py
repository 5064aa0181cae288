from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from ltp_service.db.session import Base
from ltp_service.utils.time import utcnow


class RequestLog(Base):
    __tablename__ = "request_logs"
    __table_args__ = (
        Index("idx_timestamp", "timestamp"),
        Index("idx_status", "status_code"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(36), unique=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow)

    method = Column(String(10))
    endpoint = Column(String(100))
    pairs_requested = Column(Text)
    user_ip = Column(String(45))

    status_code = Column(Integer)
    response_time_ms = Column(Integer)

    cache_hit = Column(Boolean)
    kraken_calls = Column(Integer)
    resolved_count = Column(Integer)
    success_count = Column(Integer)
    error_count = Column(Integer)

    error_occurred = Column(Boolean)
    error_message = Column(Text)
