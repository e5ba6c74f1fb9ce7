"""
In-Memory Studio Store
Holds the five entity collections for one session and provides the only way to
mutate them. Every effective mutation swaps in a new tuple for the affected
collection, so a reader holding an old snapshot never sees a half-applied change.
Records themselves are frozen, so a snapshot can be shared with any caller.
"""

import logging
import uuid
from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from studiocrm.bus.events import EventBus, entity_event
from studiocrm.config import config
from studiocrm.models import Booking, Client, Gallery, Package, Referral

logger = logging.getLogger(__name__)

_MODELS = {
    'client': Client,
    'booking': Booking,
    'gallery': Gallery,
    'package': Package,
    'referral': Referral,
}

# Allowlists for update patches: every model field except the id
_UPDATABLE_FIELDS = {
    kind: {f.name for f in fields(model)} - {'id'}
    for kind, model in _MODELS.items()
}


# List-valued fields are held as tuples so a stored record cannot change in place
_SEQUENCE_FIELDS = {
    'package': ('features',),
}

# How many duplicate ids the factory may return in a row before add gives up
_MAX_ID_ATTEMPTS = 10


def _validate_fields(updates: Dict[str, Any], allowed: set, entity: str) -> None:
    """Raise ValueError if any key in updates is not a known field of the entity."""
    invalid = set(updates.keys()) - allowed
    if invalid:
        raise ValueError(f"Invalid {entity} fields: {invalid}")


def _freeze_sequences(kind: str, values: Dict[str, Any]) -> Dict[str, Any]:
    """Return values with every list-valued field of the entity copied into a tuple."""
    frozen = dict(values)
    for name in _SEQUENCE_FIELDS.get(kind, ()):
        if frozen.get(name) is not None:
            frozen[name] = tuple(frozen[name])
    return frozen


def _frozen(kind: str, entity):
    names = _SEQUENCE_FIELDS.get(kind, ())
    if not names:
        return entity
    return replace(entity, **_freeze_sequences(kind, {n: getattr(entity, n) for n in names}))


def _uuid_id() -> str:
    return str(uuid.uuid4())


def _without_other_popular(packages: Tuple[Package, ...], keep_id: str) -> Tuple[Package, ...]:
    return tuple(
        replace(p, popular=False) if p.popular and p.id != keep_id else p
        for p in packages
    )


class StudioStore:
    """
    Session store for clients, bookings, galleries, packages and referrals.

    Construct one per session and pass it to whatever needs it. The id factory,
    clock and event bus are injectable so tests can run several independent
    stores with deterministic ids and a fixed "now".

    Cross references are never validated and derived client counters are never
    recomputed here; see studiocrm.engine.crm for the caller-side rules.
    """

    def __init__(
        self,
        clients: Iterable[Client] = (),
        bookings: Iterable[Booking] = (),
        galleries: Iterable[Gallery] = (),
        packages: Iterable[Package] = (),
        referrals: Iterable[Referral] = (),
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        bus: Optional[EventBus] = None,
        single_popular: Optional[bool] = None,
    ):
        self._collections: Dict[str, Tuple[Any, ...]] = {
            'client': tuple(clients),
            'booking': tuple(bookings),
            'gallery': tuple(galleries),
            'package': tuple(_frozen('package', p) for p in packages),
            'referral': tuple(referrals),
        }
        self._id_factory = id_factory or _uuid_id
        self.clock = clock or datetime.now
        self.bus = bus if bus is not None else EventBus()
        self.single_popular = (
            config.SINGLE_POPULAR_PACKAGE if single_popular is None else single_popular
        )
        self._issued_ids = {
            kind: {e.id for e in items if e.id is not None}
            for kind, items in self._collections.items()
        }

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    @property
    def clients(self) -> Tuple[Client, ...]:
        return self._collections['client']

    @property
    def bookings(self) -> Tuple[Booking, ...]:
        return self._collections['booking']

    @property
    def galleries(self) -> Tuple[Gallery, ...]:
        return self._collections['gallery']

    @property
    def packages(self) -> Tuple[Package, ...]:
        return self._collections['package']

    @property
    def referrals(self) -> Tuple[Referral, ...]:
        return self._collections['referral']

    def now(self) -> datetime:
        return self.clock()

    # -------------------------------------------------------------------------
    # Generic operations
    # -------------------------------------------------------------------------

    def _new_id(self, kind: str) -> str:
        # Ids are never reused within a store, not even after a delete
        issued = self._issued_ids[kind]
        for _ in range(_MAX_ID_ATTEMPTS):
            new_id = self._id_factory()
            if new_id not in issued:
                issued.add(new_id)
                return new_id
            logger.warning(f"Id factory returned duplicate {kind} id {new_id!r}, retrying")
        logger.error(f"Id factory gave no fresh {kind} id in {_MAX_ID_ATTEMPTS} attempts")
        raise RuntimeError(f"Could not generate a unique {kind} id")

    def _get(self, kind: str, entity_id: str):
        for entity in self._collections[kind]:
            if entity.id == entity_id:
                return entity
        logger.debug(f"get_{kind}: {kind}_id={entity_id} not found")
        return None

    def _add(self, kind: str, entity, **generated) -> str:
        entity_id = self._new_id(kind)
        stored = _frozen(kind, replace(entity, id=entity_id, **generated))
        self._collections[kind] = self._collections[kind] + (stored,)
        logger.info(f"Created {kind} ID {entity_id}")
        self.bus.emit(entity_event(kind, 'created'), {f'{kind}_id': entity_id, kind: stored})
        return entity_id

    def _update(self, kind: str, entity_id: str, updates: Dict[str, Any]) -> bool:
        if not updates:
            return False

        updates = dict(updates)
        if 'id' in updates:
            logger.debug(f"update_{kind}: ignoring 'id' in patch for {kind} {entity_id}")
            del updates['id']

        if not updates:
            return False

        collection = self._collections[kind]
        if not any(e.id == entity_id for e in collection):
            logger.debug(f"update_{kind}: {kind}_id={entity_id} not found")
            return False

        # Guard: only known fields may be merged
        _validate_fields(updates, _UPDATABLE_FIELDS[kind], kind)
        updates = _freeze_sequences(kind, updates)

        new_collection = tuple(
            replace(e, **updates) if e.id == entity_id else e for e in collection
        )
        if kind == 'package' and self.single_popular and updates.get('popular'):
            new_collection = _without_other_popular(new_collection, entity_id)
        self._collections[kind] = new_collection
        logger.info(f"Updated {kind} ID {entity_id}: {sorted(updates.keys())}")
        self.bus.emit(entity_event(kind, 'updated'), {f'{kind}_id': entity_id, 'updates': updates})
        return True

    def _delete(self, kind: str, entity_id: str) -> bool:
        collection = self._collections[kind]
        remaining = tuple(e for e in collection if e.id != entity_id)
        if len(remaining) == len(collection):
            logger.debug(f"delete_{kind}: {kind}_id={entity_id} not found")
            return False

        self._collections[kind] = remaining
        logger.info(f"Deleted {kind} ID {entity_id}")
        self.bus.emit(entity_event(kind, 'deleted'), {f'{kind}_id': entity_id})
        return True

    # =========================================================================
    # CLIENT OPERATIONS
    # =========================================================================

    def add_client(self, client: Client) -> str:
        """
        Store a new client with a fresh id, created_at=now and zeroed counters.
        Returns: client_id
        """
        return self._add(
            'client', client,
            created_at=self.now(), referral_count=0, total_bookings=0, total_spent=0,
        )

    def get_client(self, client_id: str) -> Optional[Client]:
        return self._get('client', client_id)

    def update_client(self, client_id: str, updates: Dict[str, Any]) -> bool:
        """
        Merge updates into a client. Counters change only if the patch sets them.
        Returns: True if updated, False if not found or nothing to change
        """
        return self._update('client', client_id, updates)

    def delete_client(self, client_id: str) -> bool:
        """Remove a client. Bookings, galleries and referrals keep the dangling id."""
        return self._delete('client', client_id)

    # =========================================================================
    # BOOKING OPERATIONS
    # =========================================================================

    def add_booking(self, booking: Booking) -> str:
        """
        Store a booking as given; client_name/package_name are not looked up.
        Returns: booking_id
        """
        return self._add('booking', booking, reminder_sent=False)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._get('booking', booking_id)

    def update_booking(self, booking_id: str, updates: Dict[str, Any]) -> bool:
        return self._update('booking', booking_id, updates)

    def delete_booking(self, booking_id: str) -> bool:
        return self._delete('booking', booking_id)

    # =========================================================================
    # GALLERY OPERATIONS
    # =========================================================================

    def add_gallery(self, gallery: Gallery) -> str:
        return self._add('gallery', gallery, created_at=self.now())

    def get_gallery(self, gallery_id: str) -> Optional[Gallery]:
        return self._get('gallery', gallery_id)

    def update_gallery(self, gallery_id: str, updates: Dict[str, Any]) -> bool:
        return self._update('gallery', gallery_id, updates)

    def delete_gallery(self, gallery_id: str) -> bool:
        return self._delete('gallery', gallery_id)

    # =========================================================================
    # PACKAGE OPERATIONS
    # =========================================================================

    def add_package(self, package: Package) -> str:
        """
        Store a new package. With single_popular on, a popular package
        takes the flag away from every other package.
        Returns: package_id
        """
        entity_id = self._new_id('package')
        stored = _frozen('package', replace(package, id=entity_id))
        new_collection = self._collections['package'] + (stored,)
        if self.single_popular and stored.popular:
            new_collection = _without_other_popular(new_collection, entity_id)
        self._collections['package'] = new_collection
        logger.info(f"Created package ID {entity_id}: {stored.name}")
        self.bus.emit(entity_event('package', 'created'), {'package_id': entity_id, 'package': stored})
        return entity_id

    def get_package(self, package_id: str) -> Optional[Package]:
        return self._get('package', package_id)

    def update_package(self, package_id: str, updates: Dict[str, Any]) -> bool:
        return self._update('package', package_id, updates)

    def delete_package(self, package_id: str) -> bool:
        return self._delete('package', package_id)

    # =========================================================================
    # REFERRAL OPERATIONS
    # =========================================================================

    def add_referral(self, referral: Referral) -> str:
        """Store a referral stamped with date=now. Returns: referral_id"""
        return self._add('referral', referral, date=self.now())

    def get_referral(self, referral_id: str) -> Optional[Referral]:
        return self._get('referral', referral_id)

    def update_referral(self, referral_id: str, updates: Dict[str, Any]) -> bool:
        return self._update('referral', referral_id, updates)

    def delete_referral(self, referral_id: str) -> bool:
        return self._delete('referral', referral_id)
