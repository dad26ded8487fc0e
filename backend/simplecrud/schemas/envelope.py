"""
simple-crud — Response Envelope
================================

What:  The `{message, status}` body used for every confirmation and error.
How:   A Pydantic model plus a pure constructor; no I/O.
Who:   Built by the repository and the dispatcher; serialized by the dispatcher
       and the global exception handlers.

Example:
    {"message": "Deleted count: 1", "status": 200}

Reads never use the envelope: a successful GET returns the stored document.
"""

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Uniform confirmation / error body. `status` mirrors the HTTP status code."""

    message: str = Field(description="Human-readable outcome")
    status: int = Field(description="HTTP status code of the response")


def make_response(message: str, status: int) -> Envelope:
    return Envelope(message=message, status=status)
