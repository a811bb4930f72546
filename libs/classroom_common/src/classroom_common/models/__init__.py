"""Pure pydantic models shared across the classroom service."""
