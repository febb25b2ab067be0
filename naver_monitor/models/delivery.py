"""
Notification delivery result models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class DeliveryResult:
    """Outcome of handing a notification to a sink."""

    success: bool
    sink: str
    error_message: Optional[str] = None
    delivery_time: datetime = field(default_factory=datetime.now)

    @classmethod
    def delivered(cls, sink: str) -> "DeliveryResult":
        return cls(success=True, sink=sink)

    @classmethod
    def failed(cls, sink: str, error: str) -> "DeliveryResult":
        # Sink error payloads can be long HTML pages
        return cls(success=False, sink=sink, error_message=error[:500])

    def validate(self) -> bool:
        """Validate delivery result data."""
        if not self.sink or not self.sink.strip():
            raise ValueError("sink cannot be empty")

        if self.error_message is not None and len(self.error_message) > 500:
            raise ValueError("error_message too long (max 500 characters)")

        if not self.success and not self.error_message:
            raise ValueError("error_message should be provided when success is False")

        return True
