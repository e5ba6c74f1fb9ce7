"""
Data Models
Frozen dataclasses for all studio entities. Pure Python objects, no storage logic.
Change a stored record through the store (or dataclasses.replace), never in place.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


BOOKING_STATUSES = ('scheduled', 'completed', 'cancelled')
DELIVERY_STATUSES = ('pending', 'processing', 'delivered')
REFERRAL_STATUSES = ('pending', 'converted', 'declined')


@dataclass(frozen=True)
class Client:
    """Studio client. Counters are stored, not derived from bookings/referrals."""
    id: Optional[str] = None
    name: str = ''
    email: str = ''
    phone: str = ''
    avatar: Optional[str] = None
    referred_by: Optional[str] = None
    referral_count: int = 0
    total_bookings: int = 0
    total_spent: float = 0
    created_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Booking:
    """Photo session booking. client_name/package_name are copied at creation."""
    id: Optional[str] = None
    client_id: str = ''
    client_name: str = ''
    package_id: str = ''
    package_name: str = ''
    date: Optional[datetime] = None
    location: str = ''
    status: str = 'scheduled'
    duration: int = 0
    price: float = 0
    notes: Optional[str] = None
    reminder_sent: bool = False


@dataclass(frozen=True)
class Gallery:
    """Delivered (or in-progress) photo gallery for a client"""
    id: Optional[str] = None
    client_id: str = ''
    client_name: str = ''
    title: str = ''
    description: Optional[str] = None
    cover_image: str = ''
    photo_count: int = 0
    created_at: Optional[datetime] = None
    delivery_status: str = 'pending'
    access_link: Optional[str] = None


@dataclass(frozen=True)
class Package:
    """Service package offered by the studio"""
    id: Optional[str] = None
    name: str = ''
    description: str = ''
    price: float = 0
    duration: int = 0
    photo_count: int = 0
    features: Tuple[str, ...] = ()
    popular: bool = False


@dataclass(frozen=True)
class Referral:
    """Referral of a new (prospective) client by an existing one"""
    id: Optional[str] = None
    referrer_id: str = ''
    referrer_name: str = ''
    referred_client_id: Optional[str] = None
    referred_client_name: Optional[str] = None
    status: str = 'pending'
    date: Optional[datetime] = None
    value: Optional[float] = None
