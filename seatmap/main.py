import asyncio, json
from dataclasses import asdict
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from loguru import logger
from . import crud, config
from .database import engine
from .engine import layout_stats
from .exceptions import register_exception_handlers
from .logging_config import setup_logging
from .models import Base
from .schemas import FlightIn, FlightOut, BookedSeatsOut, SeatMapOut, BookingIn, BookingOut
import uvicorn

app = FastAPI(title="Flight Seat Map Service")
register_exception_handlers(app)


# Simple websocket manager
class WSManager:
    def __init__(self):
        self.connections = set()

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.connections.add(ws)

    def disconnect(self, ws: WebSocket):
        self.connections.discard(ws)

    async def broadcast(self, message: dict):
        dead = []
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.debug(f"dropping websocket after failed send: {e}")
                dead.append(ws)
        for d in dead:
            self.disconnect(d)


ws_manager = WSManager()


# Startup: create tables and demo data, start redis subscriber bridge
@app.on_event("startup")
async def startup():
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if config.CREATE_DEMO_DATA:
        await crud.create_demo_data()
    app.state.listener = asyncio.create_task(_redis_listener())


@app.on_event("shutdown")
async def shutdown():
    listener = getattr(app.state, "listener", None)
    if listener:
        listener.cancel()


async def _redis_listener():
    pub = crud.redis_client.pubsub()
    await pub.subscribe(config.SEAT_EVENTS_CHANNEL)
    logger.info(f"relaying {config.SEAT_EVENTS_CHANNEL} events to websockets")
    async for msg in pub.listen():
        if msg is None or msg.get("type") != "message":
            continue
        try:
            data = json.loads(msg["data"])
        except json.JSONDecodeError:
            logger.warning(f"ignoring malformed seat event: {msg['data']!r}")
            continue
        # forward to connected websockets
        await ws_manager.broadcast(data)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/flights", response_model=list[FlightOut])
async def list_flights():
    return await crud.list_flights()


@app.post("/flights", response_model=FlightOut, status_code=201)
async def add_flight(flight: FlightIn):
    return await crud.create_flight(flight)


@app.get("/flights/{flight_id}", response_model=FlightOut)
async def get_flight(flight_id: int):
    return await crud.get_flight(flight_id)


@app.get("/flights/{flight_id}/seats", response_model=BookedSeatsOut)
async def get_booked_seats(flight_id: int):
    seats = await crud.list_booked_seats(flight_id)
    return {"flight_id": flight_id, "booked_seats": seats}


@app.get("/flights/{flight_id}/seatmap", response_model=SeatMapOut)
async def get_seat_map(flight_id: int):
    flight, layout, owners = await crud.get_seat_map(flight_id)
    rows = [
        [
            {"label": s.label, "row": s.row, "column": s.column, "index": s.linear_index,
             "state": s.state.value, "booking_reference": owners.get(s.label)}
            for s in row
        ]
        for row in layout.rows
    ]
    stats = layout_stats(layout)
    return {"flight_id": flight.id, "number": flight.number, "rows": rows, "stats": asdict(stats)}


@app.post("/flights/{flight_id}/bookings", response_model=BookingOut, status_code=201)
async def book_seats(flight_id: int, booking: BookingIn):
    return await crud.create_booking(flight_id, booking.passengers, booking.seat_numbers)


@app.get("/bookings/{booking_id}", response_model=BookingOut)
async def get_booking(booking_id: int):
    return await crud.get_booking(booking_id)


@app.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(booking_id: int):
    return await crud.cancel_booking(booking_id)


# WebSocket endpoint: clients only listen for seat events
@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws_manager.connect(ws)
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(ws)


if __name__ == '__main__':
    uvicorn.run("seatmap.main:app", host="0.0.0.0", port=8000, reload=True)
