"""Alert log model: one row per webhook alert received."""

from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, Numeric, String

from market.database import Base


class Alert(Base):
    """
    Append-only record of a received alert.

    Written before any dispatch happens and kept regardless of whether the
    alert's strategy exists, is enabled, or its order executes.
    """
    __tablename__ = "alerts"

    alert_id = Column(String(36), primary_key=True)  # UUIDv7, sorts by creation time
    ticker = Column(String, nullable=False, index=True)
    timeframe = Column(String, nullable=False)
    exchange = Column(String, nullable=False)
    alert_type = Column(String, nullable=False)
    strategy_id = Column(String(36), nullable=False, index=True)

    # Bar the alert fired on
    bar_time = Column(DateTime(timezone=True), nullable=False)
    bar_open = Column(Numeric(20, 8), nullable=False)
    bar_high = Column(Numeric(20, 8), nullable=False)
    bar_low = Column(Numeric(20, 8), nullable=False)
    bar_close = Column(Numeric(20, 8), nullable=False)
    bar_volume = Column(BigInteger, nullable=False)

    alert_fire_time = Column(DateTime(timezone=True), nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    modified_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Alert {self.alert_id} {self.ticker} {self.alert_type}>"
