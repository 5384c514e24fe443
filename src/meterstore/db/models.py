from sqlalchemy import Column, Integer, Date, DateTime, Float, Time, Index
from src.meterstore.db.session import Base


class Readout(Base):
    __tablename__ = "readouts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False)  # naive wall-clock in settings.TIMEZONE
    # legacy split of `timestamp`, still written for older dashboards
    date = Column(Date)
    time = Column(Time)
    tarif = Column(Integer, default=0)
    power_received = Column(Float, default=0.0)
    power_delivered = Column(Float, default=0.0)
    gas_received = Column(Float, default=0.0)
    total_power_received_low = Column(Float, default=0.0)
    total_power_received_peak = Column(Float, default=0.0)
    total_power_delivered_low = Column(Float, default=0.0)
    total_power_delivered_peak = Column(Float, default=0.0)
    __table_args__ = (Index("ix_readouts_timestamp", "timestamp"),)
