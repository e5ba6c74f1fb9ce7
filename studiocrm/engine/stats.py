"""
Derived Views - Dashboard Statistics
Pure functions over the current store snapshot. Nothing is cached and every call
recomputes from the collections, so the same collections always give the same
result. The only time input is the explicit `now` (default: the store clock).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from studiocrm.config import config
from studiocrm.db.memory import StudioStore
from studiocrm.models import Booking, Client, Gallery, Referral

logger = logging.getLogger(__name__)


@dataclass
class DashboardSummary:
    """Headline numbers for the dashboard stat cards"""
    total_clients: int = 0
    revenue: float = 0
    upcoming_count: int = 0
    active_referrals: int = 0


@dataclass
class ClientActivity:
    """Client counters computed live from bookings and referrals"""
    client_id: str = ''
    total_bookings: int = 0
    total_spent: float = 0
    referral_count: int = 0


# =============================================================================
# REVENUE & BOOKINGS
# =============================================================================

def total_revenue(store: StudioStore, include_cancelled: Optional[bool] = None) -> float:
    """
    Sum of price over all bookings.
    Cancelled bookings are included unless include_cancelled is False
    (default: REVENUE_INCLUDES_CANCELLED).
    """
    if include_cancelled is None:
        include_cancelled = config.REVENUE_INCLUDES_CANCELLED
    return sum(
        b.price for b in store.bookings
        if include_cancelled or b.status != 'cancelled'
    )


def upcoming_bookings(
    store: StudioStore,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[Booking]:
    """Scheduled bookings dated strictly after now, soonest first."""
    if now is None:
        now = store.now()
    results = sorted(
        (b for b in store.bookings
         if b.status == 'scheduled' and b.date is not None and b.date > now),
        key=lambda b: b.date,
    )
    if limit is not None:
        results = results[:limit]
    logger.debug(f"upcoming_bookings: {len(results)} results (now={now}, limit={limit})")
    return results


def scheduled_bookings(store: StudioStore, limit: Optional[int] = None) -> List[Booking]:
    """All scheduled bookings, past or future, soonest first. Undated ones go last."""
    results = sorted(
        (b for b in store.bookings if b.status == 'scheduled'),
        key=lambda b: (b.date is None, b.date or datetime.min),
    )
    return results[:limit] if limit is not None else results


def bookings_by_status(store: StudioStore, status: str) -> List[Booking]:
    return [b for b in store.bookings if b.status == status]


# =============================================================================
# GALLERIES
# =============================================================================

def pending_galleries(store: StudioStore) -> List[Gallery]:
    """Galleries not yet delivered (pending or processing)."""
    return [g for g in store.galleries if g.delivery_status != 'delivered']


# =============================================================================
# CLIENTS
# =============================================================================

def top_clients(store: StudioStore, limit: Optional[int] = None) -> List[Client]:
    """Clients by stored total_spent, highest first. Ties keep insertion order."""
    if limit is None:
        limit = config.TOP_CLIENTS_LIMIT
    return sorted(store.clients, key=lambda c: c.total_spent, reverse=True)[:limit]


def search_clients(store: StudioStore, query: Optional[str] = None) -> List[Client]:
    """Case-insensitive substring match on name or email. Blank query returns everyone."""
    if not query:
        return list(store.clients)
    needle = query.lower()
    return [
        c for c in store.clients
        if needle in (c.name or '').lower() or needle in (c.email or '').lower()
    ]


def client_activity(store: StudioStore, client_id: str) -> ClientActivity:
    """
    Recompute a client's counters from the actual collections.

    - total_bookings counts the client's non-cancelled bookings
    - total_spent sums price over those same bookings
    - referral_count counts referrals the client made, in any status
    """
    booked = [
        b for b in store.bookings
        if b.client_id == client_id and b.status != 'cancelled'
    ]
    return ClientActivity(
        client_id=client_id,
        total_bookings=len(booked),
        total_spent=sum(b.price for b in booked),
        referral_count=sum(1 for r in store.referrals if r.referrer_id == client_id),
    )


# =============================================================================
# REFERRALS
# =============================================================================

def active_referrals(store: StudioStore) -> List[Referral]:
    return [r for r in store.referrals if r.status == 'converted']


def conversion_rate(store: StudioStore) -> float:
    """Converted referrals as a percentage of all referrals; 0 when there are none."""
    referrals = store.referrals
    if not referrals:
        return 0
    converted = sum(1 for r in referrals if r.status == 'converted')
    return converted / len(referrals) * 100


def total_referral_value(store: StudioStore) -> float:
    """Sum of value over converted referrals. A converted referral without a value adds 0."""
    return sum(r.value or 0 for r in store.referrals if r.status == 'converted')


def top_referrers(store: StudioStore, limit: Optional[int] = None) -> List[Client]:
    """Clients with referral_count > 0, highest first."""
    if limit is None:
        limit = config.TOP_REFERRERS_LIMIT
    referrers = [c for c in store.clients if c.referral_count > 0]
    return sorted(referrers, key=lambda c: c.referral_count, reverse=True)[:limit]


def recent_referrals(store: StudioStore) -> List[Referral]:
    """Referrals newest first; undated ones last."""
    return sorted(
        store.referrals,
        key=lambda r: (r.date is not None, r.date or datetime.min),
        reverse=True,
    )


# =============================================================================
# DASHBOARD
# =============================================================================

def dashboard_summary(store: StudioStore, now: Optional[datetime] = None) -> DashboardSummary:
    summary = DashboardSummary(
        total_clients=len(store.clients),
        revenue=total_revenue(store),
        upcoming_count=len(upcoming_bookings(store, now=now)),
        active_referrals=len(active_referrals(store)),
    )
    logger.debug(f"dashboard_summary: {summary}")
    return summary
