import logging

from fastapi import FastAPI

from massage_booking.api.v1.bookings import router as bookings_router
from massage_booking.api.v1.catalog import router as catalog_router
from massage_booking.core.config import settings

# Fields use cases pass through `extra=` that are worth showing on one line.
LOG_CONTEXT_KEYS = ("draft_id", "step", "appointment_id", "client_id", "reason", "error")


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in LOG_CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title=f"{settings.BUSINESS_NAME} Booking", version="1.0.0")

app.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])
app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
