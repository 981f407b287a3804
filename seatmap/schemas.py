from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from .config import MAX_SEATS_PER_BOOKING


class FlightIn(BaseModel):
    number: str = Field(min_length=1)
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    depart_at: datetime
    arrive_at: datetime
    price: float = Field(ge=0)
    total_seats: int = Field(ge=1)

    @field_validator("number")
    @classmethod
    def upper_number(cls, v: str) -> str:
        return v.strip().upper()


class FlightOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: str
    origin: str
    destination: str
    depart_at: datetime
    arrive_at: datetime
    price: float
    total_seats: int
    available_seats: int
    status: str


class BookedSeatsOut(BaseModel):
    flight_id: int
    booked_seats: List[str]


class SeatOut(BaseModel):
    label: str
    row: int
    column: str
    index: int
    state: str
    booking_reference: Optional[str] = None


class SeatStatsOut(BaseModel):
    total_seats: int
    booked_seats: int
    available_seats: int
    occupancy_rate: float


class SeatMapOut(BaseModel):
    flight_id: int
    number: str
    rows: List[List[SeatOut]]
    stats: SeatStatsOut


class BookingIn(BaseModel):
    passengers: List[str] = Field(min_length=1, max_length=MAX_SEATS_PER_BOOKING)
    seat_numbers: List[str] = Field(min_length=1, max_length=MAX_SEATS_PER_BOOKING)


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    flight_id: int
    booking_reference: str
    seat_count: int
    seat_numbers: List[str]
    passenger_names: List[str]
    total_price: float
    status: str
