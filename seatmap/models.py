from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, JSON, func, CheckConstraint
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

FLIGHT_STATUSES = ("scheduled", "active", "cancelled", "completed", "delayed")
# bookings in these states hold their seats
ACTIVE_BOOKING_STATUSES = ("confirmed", "pending")


class Flight(Base):
    __tablename__ = "flights"
    id = Column(Integer, primary_key=True)
    number = Column(String, unique=True, nullable=False)
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    depart_at = Column(DateTime, nullable=False)
    arrive_at = Column(DateTime, nullable=False)
    price = Column(Float, nullable=False, default=0)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    status = Column(String, default="scheduled")
    created_at = Column(DateTime, server_default=func.now())

    bookings = relationship("Booking", back_populates="flight")

    __table_args__ = (
        CheckConstraint("total_seats >= 1", name="ck_flight_total_seats"),
        CheckConstraint("available_seats >= 0", name="ck_flight_available_seats"),
    )


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True)
    flight_id = Column(Integer, ForeignKey("flights.id", ondelete="CASCADE"), nullable=False)
    booking_reference = Column(String, unique=True, nullable=False)
    seat_count = Column(Integer, nullable=False)
    seat_numbers = Column(JSON, nullable=False, default=list)
    passenger_names = Column(JSON, nullable=False, default=list)
    total_price = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="confirmed")  # pending, confirmed, cancelled
    created_at = Column(DateTime, server_default=func.now())

    flight = relationship("Flight", back_populates="bookings")
