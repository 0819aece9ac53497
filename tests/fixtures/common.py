"""
Common/Shared Fixtures

Base factories and generators used across test layers.
"""
import random
import uuid
from datetime import datetime, timezone
from typing import Optional


def make_shipment_id() -> str:
    """Generate a unique shipment ID"""
    return uuid.uuid4().hex


def make_tracking_number(number: Optional[int] = None) -> str:
    """Generate a tracking number, random unless ``number`` is given"""
    if number is None:
        number = random.randint(0, 9_999_999)
    return f"SHIP{number:07d}"


def make_email(prefix: Optional[str] = None) -> str:
    """Generate a unique email"""
    prefix = prefix or f"test_{uuid.uuid4().hex[:8]}"
    return f"{prefix}@example.com"


def make_timestamp() -> str:
    """Generate current UTC timestamp"""
    return datetime.now(timezone.utc).isoformat()
