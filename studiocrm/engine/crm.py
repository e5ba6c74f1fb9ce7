"""
CRM Engine - Studio Workflows
The store accepts whatever it is given. This module is the caller side: it
looks up referenced clients and packages before writing, copies their display
fields onto the new record, and applies the status transitions offered by the
booking, gallery, package and referral screens. A failed lookup or a record in
the wrong state aborts the action and returns None/False; nothing here raises
for a missing entity.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from studiocrm.config import config
from studiocrm.db.memory import StudioStore
from studiocrm.engine.stats import client_activity
from studiocrm.models import Booking, Gallery, Referral

logger = logging.getLogger(__name__)


# =============================================================================
# BOOKINGS
# =============================================================================

def book_session(
    store: StudioStore,
    client_id: str,
    package_id: str,
    date: datetime,
    location: str,
    notes: Optional[str] = None,
) -> Optional[str]:
    """
    Book a client onto a package.
    Price and duration come from the package; names are copied as a snapshot.
    Returns: booking_id, or None if the client or package does not exist
    """
    client = store.get_client(client_id)
    package = store.get_package(package_id)
    if client is None or package is None:
        logger.warning(
            f"book_session aborted: client={client_id} found={client is not None}, "
            f"package={package_id} found={package is not None}"
        )
        return None

    return store.add_booking(Booking(
        client_id=client.id,
        client_name=client.name,
        package_id=package.id,
        package_name=package.name,
        date=date,
        location=location,
        status='scheduled',
        duration=package.duration,
        price=package.price,
        notes=notes,
    ))


def _transition(
    kind: str,
    get: Callable[[str], Any],
    update: Callable[[str, Dict[str, Any]], bool],
    entity_id: str,
    field: str,
    required: str,
    updates: Dict[str, Any],
) -> bool:
    """
    Apply updates only while the entity's `field` still equals `required`.
    A missing entity or any other state logs a warning and returns False.
    """
    entity = get(entity_id)
    if entity is None:
        logger.warning(f"Cannot mark {kind} {entity_id} {updates[field]}: not found")
        return False
    current = getattr(entity, field)
    if current != required:
        logger.warning(f"Cannot mark {kind} {entity_id} {updates[field]}: {field} is {current}")
        return False
    return update(entity_id, updates)


def _close_booking(store: StudioStore, booking_id: str, status: str) -> bool:
    return _transition(
        'booking', store.get_booking, store.update_booking,
        booking_id, 'status', 'scheduled', {'status': status},
    )


def complete_booking(store: StudioStore, booking_id: str) -> bool:
    """scheduled -> completed. Returns False for any other starting state."""
    return _close_booking(store, booking_id, 'completed')


def cancel_booking(store: StudioStore, booking_id: str) -> bool:
    """scheduled -> cancelled. Returns False for any other starting state."""
    return _close_booking(store, booking_id, 'cancelled')


# =============================================================================
# GALLERIES
# =============================================================================

def create_gallery(
    store: StudioStore,
    client_id: str,
    title: str,
    cover_image: str = '',
    photo_count: int = 0,
    description: Optional[str] = None,
    delivery_status: str = 'pending',
    access_link: Optional[str] = None,
) -> Optional[str]:
    """
    Create a gallery for an existing client.
    Returns: gallery_id, or None if the client does not exist
    """
    client = store.get_client(client_id)
    if client is None:
        logger.warning(f"create_gallery aborted: client {client_id} not found")
        return None

    return store.add_gallery(Gallery(
        client_id=client.id,
        client_name=client.name,
        title=title,
        description=description,
        cover_image=cover_image,
        photo_count=photo_count,
        delivery_status=delivery_status,
        access_link=access_link,
    ))


def start_gallery_processing(store: StudioStore, gallery_id: str) -> bool:
    """pending -> processing. Returns False for any other starting state."""
    return _transition(
        'gallery', store.get_gallery, store.update_gallery,
        gallery_id, 'delivery_status', 'pending', {'delivery_status': 'processing'},
    )


def mark_gallery_delivered(
    store: StudioStore,
    gallery_id: str,
    access_link: Optional[str] = None,
) -> bool:
    """
    processing -> delivered, optionally setting the client access link.
    An existing link is kept when none is given.
    """
    updates = {'delivery_status': 'delivered'}
    if access_link:
        updates['access_link'] = access_link
    return _transition(
        'gallery', store.get_gallery, store.update_gallery,
        gallery_id, 'delivery_status', 'processing', updates,
    )


# =============================================================================
# PACKAGES
# =============================================================================

def toggle_package_popular(store: StudioStore, package_id: str) -> Optional[bool]:
    """
    Flip a package's "most popular" badge.
    With single_popular on, flagging one package clears the badge everywhere else.
    Returns: the new flag, or None if the package does not exist
    """
    package = store.get_package(package_id)
    if package is None:
        logger.warning(f"toggle_package_popular aborted: package {package_id} not found")
        return None

    popular = not package.popular
    store.update_package(package_id, {'popular': popular})
    return popular


# =============================================================================
# REFERRALS
# =============================================================================

def track_referral(
    store: StudioStore,
    referrer_id: str,
    referred_client_name: str,
    referred_client_id: Optional[str] = None,
) -> Optional[str]:
    """
    Record a pending referral from an existing client.
    Returns: referral_id, or None if the referrer does not exist
    """
    referrer = store.get_client(referrer_id)
    if referrer is None:
        logger.warning(f"track_referral aborted: referrer {referrer_id} not found")
        return None

    return store.add_referral(Referral(
        referrer_id=referrer.id,
        referrer_name=referrer.name,
        referred_client_id=referred_client_id,
        referred_client_name=referred_client_name,
        status='pending',
    ))


def convert_referral(store: StudioStore, referral_id: str, value: Optional[float] = None) -> bool:
    """
    pending -> converted, recording the value (default: DEFAULT_REFERRAL_VALUE).
    A referral that is already converted or declined is left untouched.
    """
    if value is None:
        value = config.DEFAULT_REFERRAL_VALUE
    return _transition(
        'referral', store.get_referral, store.update_referral,
        referral_id, 'status', 'pending', {'status': 'converted', 'value': value},
    )


def decline_referral(store: StudioStore, referral_id: str) -> bool:
    """pending -> declined. Returns False for any other starting state."""
    return _transition(
        'referral', store.get_referral, store.update_referral,
        referral_id, 'status', 'pending', {'status': 'declined'},
    )


# =============================================================================
# CONSISTENCY
# =============================================================================

def recompute_client_counters(store: StudioStore, client_id: Optional[str] = None) -> List[str]:
    """
    Overwrite stored client counters with values computed from bookings and referrals.

    The store never does this on its own; this is the explicit reconciliation step.
    Args:
        client_id: Only this client (default: every client)
    Returns: ids of the clients whose counters actually changed
    """
    if client_id is not None:
        targets = [c for c in store.clients if c.id == client_id]
    else:
        targets = list(store.clients)

    changed = []
    for client in targets:
        live = client_activity(store, client.id)
        updates = {}
        if client.total_bookings != live.total_bookings:
            updates['total_bookings'] = live.total_bookings
        if client.total_spent != live.total_spent:
            updates['total_spent'] = live.total_spent
        if client.referral_count != live.referral_count:
            updates['referral_count'] = live.referral_count
        if updates and store.update_client(client.id, updates):
            changed.append(client.id)

    logger.info(f"recompute_client_counters: {len(changed)} of {len(targets)} clients changed")
    return changed


def refresh_display_names(store: StudioStore, client_id: Optional[str] = None) -> int:
    """
    Re-copy client and package names onto bookings, galleries and referrals.

    Records pointing at a deleted client or package keep their old names.
    Args:
        client_id: Only records referencing this client (default: all records)
    Returns: number of records updated
    """
    clients = {c.id: c.name for c in store.clients}
    packages = {p.id: p.name for p in store.packages}

    def wanted(ref_id):
        return client_id is None or ref_id == client_id

    updated = 0
    for b in store.bookings:
        if not wanted(b.client_id):
            continue
        updates = {}
        if b.client_id in clients and b.client_name != clients[b.client_id]:
            updates['client_name'] = clients[b.client_id]
        if b.package_id in packages and b.package_name != packages[b.package_id]:
            updates['package_name'] = packages[b.package_id]
        if updates and store.update_booking(b.id, updates):
            updated += 1

    for g in store.galleries:
        if wanted(g.client_id) and g.client_id in clients and g.client_name != clients[g.client_id]:
            if store.update_gallery(g.id, {'client_name': clients[g.client_id]}):
                updated += 1

    for r in store.referrals:
        if wanted(r.referrer_id) and r.referrer_id in clients and r.referrer_name != clients[r.referrer_id]:
            if store.update_referral(r.id, {'referrer_name': clients[r.referrer_id]}):
                updated += 1

    logger.info(f"refresh_display_names: {updated} records updated")
    return updated
