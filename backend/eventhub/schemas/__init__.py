from eventhub.schemas.event import EventCreate, EventUpdate, EventResponse, EventMode
from eventhub.schemas.booking import BookingCreate, BookingUpdate, BookingResponse

__all__ = [
    "EventCreate", "EventUpdate", "EventResponse", "EventMode",
    "BookingCreate", "BookingUpdate", "BookingResponse",
]
