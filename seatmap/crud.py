import json
import random
import time
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from loguru import logger
from . import models, engine as seat_engine
from .config import REDIS_URL, SEAT_EVENTS_CHANNEL
from .database import AsyncSessionLocal
from .exceptions import DomainError, NotFoundError, ConflictError
from datetime import datetime, timedelta, timezone
import redis.asyncio as redis

redis_client = redis.from_url(REDIS_URL, encoding="utf-8", decode_responses=True)

BOOKING_REFERENCE_ATTEMPTS = 2


# helper: publish to redis channel
async def publish_event(event: dict):
    await redis_client.publish(SEAT_EVENTS_CHANNEL, json.dumps(event))


# naive UTC, matching the timezone-less DateTime columns
def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_booking_reference(now=None):
    now = now or utcnow()
    stamp = str(int(time.time() * 1000))[-6:]
    return f"SW{now.year}{stamp}{random.randint(0, 999):03d}"


async def _load_flight(session, flight_id: int, for_update=False):
    q = select(models.Flight).where(models.Flight.id == flight_id)
    if for_update:
        q = q.with_for_update()
    res = await session.execute(q)
    flight = res.scalars().first()
    if not flight:
        raise NotFoundError(f"flight {flight_id} not found")
    return flight


async def _active_bookings(session, flight_id: int):
    q = select(models.Booking).where(
        models.Booking.flight_id == flight_id,
        models.Booking.status.in_(models.ACTIVE_BOOKING_STATUSES),
    )
    res = await session.execute(q)
    return res.scalars().all()


async def list_flights():
    async with AsyncSessionLocal() as session:
        res = await session.execute(select(models.Flight).order_by(models.Flight.depart_at))
        return res.scalars().all()


async def get_flight(flight_id: int):
    async with AsyncSessionLocal() as session:
        return await _load_flight(session, flight_id)


async def create_flight(data):
    if data.arrive_at <= data.depart_at:
        raise DomainError("arrival time must be after departure time")
    async with AsyncSessionLocal() as session:
        flight = models.Flight(**data.model_dump(), available_seats=data.total_seats)
        session.add(flight)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError(f"flight {data.number} already exists")
        logger.info(f"created flight {flight.number} with {flight.total_seats} seats")
        return flight


# booked seat labels of a flight, taken from confirmed and pending bookings
async def list_booked_seats(flight_id: int):
    async with AsyncSessionLocal() as session:
        await _load_flight(session, flight_id)
        bookings = await _active_bookings(session, flight_id)
        return sorted({label for b in bookings for label in b.seat_numbers})


# admin seat map: layout plus which booking holds each seat
async def get_seat_map(flight_id: int):
    async with AsyncSessionLocal() as session:
        flight = await _load_flight(session, flight_id)
        owners = {}
        for b in await _active_bookings(session, flight_id):
            for label in b.seat_numbers:
                owners[label] = b.booking_reference
        layout = seat_engine.build_layout(flight.total_seats, owners.keys())
        return flight, layout, owners


def _normalise_seats(layout, seat_numbers):
    labels = []
    for raw in seat_numbers:
        row, column = seat_engine.parse_seat_label(raw)
        label = f"{row}{column}"
        if label not in layout:
            raise DomainError(f"seat {label} does not exist on this flight")
        if label in labels:
            raise DomainError(f"seat {label} requested twice")
        labels.append(label)
    return labels


async def create_booking(flight_id: int, passengers, seat_numbers):
    if len(passengers) != len(seat_numbers):
        raise DomainError(
            f"seat count ({len(seat_numbers)}) must match number of passengers ({len(passengers)})"
        )
    for attempt in range(1, BOOKING_REFERENCE_ATTEMPTS + 1):
        try:
            booking, flight = await _insert_booking(flight_id, passengers, seat_numbers)
            break
        except IntegrityError as e:
            # the booking reference is the only unique column an insert can hit
            logger.warning(f"booking reference collision on attempt {attempt}: {e.orig}")
    else:
        raise ConflictError("could not allocate a booking reference, please retry")
    # published after commit so listeners that refresh see the booking
    await publish_event({"type": "seats_booked", "flight_id": flight.id, "seats": booking.seat_numbers,
                         "booking_id": booking.id})
    logger.info(f"booking {booking.booking_reference} took seats {booking.seat_numbers} on flight {flight.number}")
    return booking


# finalize booking using database transaction with SELECT FOR UPDATE on the flight
async def _insert_booking(flight_id: int, passengers, seat_numbers):
    async with AsyncSessionLocal() as session:
        async with session.begin():
            flight = await _load_flight(session, flight_id, for_update=True)
            if flight.status in ("cancelled", "completed"):
                raise ConflictError(f"flight {flight.number} is {flight.status}")
            taken = {label for b in await _active_bookings(session, flight_id) for label in b.seat_numbers}
            layout = seat_engine.build_layout(flight.total_seats, taken)
            labels = _normalise_seats(layout, seat_numbers)
            clash = sorted(label for label in labels if layout.seat(label).is_booked)
            if clash:
                raise ConflictError(f"seats already booked: {', '.join(clash)}")
            if flight.available_seats < len(labels):
                raise ConflictError("not enough available seats")
            booking = models.Booking(
                flight_id=flight.id,
                booking_reference=generate_booking_reference(),
                seat_count=len(labels),
                seat_numbers=labels,
                passenger_names=list(passengers),
                total_price=flight.price * len(labels),
                status="confirmed",
            )
            session.add(booking)
            flight.available_seats -= len(labels)
            await session.flush()  # get booking.id
        return booking, flight


async def get_booking(booking_id: int):
    async with AsyncSessionLocal() as session:
        booking = await session.get(models.Booking, booking_id)
        if not booking:
            raise NotFoundError(f"booking {booking_id} not found")
        return booking


async def cancel_booking(booking_id: int):
    async with AsyncSessionLocal() as session:
        async with session.begin():
            booking = await session.get(models.Booking, booking_id)
            if not booking:
                raise NotFoundError(f"booking {booking_id} not found")
            if booking.status == "cancelled":
                raise ConflictError(f"booking {booking.booking_reference} is already cancelled")
            flight = await _load_flight(session, booking.flight_id, for_update=True)
            booking.status = "cancelled"
            flight.available_seats = min(flight.available_seats + booking.seat_count, flight.total_seats)
    await publish_event({"type": "seats_released", "flight_id": flight.id,
                         "seats": list(booking.seat_numbers), "booking_id": booking.id})
    logger.info(f"booking {booking.booking_reference} cancelled, seats {booking.seat_numbers} released")
    return booking


# helper to create initial demo data
async def create_demo_data():
    async with AsyncSessionLocal() as session:
        async with session.begin():
            res = await session.execute(select(models.Flight.id).limit(1))
            if res.first():
                return
            now = utcnow()
            f = models.Flight(number="F100", origin="DEL", destination="AKL", price=450.0,
                              depart_at=now + timedelta(days=1),
                              arrive_at=now + timedelta(days=1, hours=12),
                              total_seats=40, available_seats=40)
            session.add(f)
    logger.info("demo flight F100 created")
