"""
Unit tests for the in-memory store (studiocrm/db/memory.py).

Every test builds its own StudioStore with a counter id factory and a fixed
clock, so ids and timestamps are predictable and no state leaks between tests.
Bus events are verified by registering handlers on the store's own bus.
"""

import itertools
from dataclasses import FrozenInstanceError, replace
from datetime import datetime

import pytest

from studiocrm.bus.events import (
    EventBus,
    EVENT_BOOKING_CREATED, EVENT_CLIENT_DELETED, EVENT_CLIENT_UPDATED,
)
from studiocrm.db.memory import StudioStore, _validate_fields, _UPDATABLE_FIELDS
from studiocrm.models import Booking, Client, Gallery, Package, Referral

NOW = datetime(2026, 10, 19, 9, 30)


def make_store(**kwargs) -> StudioStore:
    counter = itertools.count(1)
    kwargs.setdefault('id_factory', lambda: f"id-{next(counter)}")
    kwargs.setdefault('clock', lambda: NOW)
    kwargs.setdefault('single_popular', False)
    return StudioStore(**kwargs)


@pytest.fixture
def store():
    return make_store()


ANN = Client(name='Ann', email='ann@example.com', phone='(555) 000-1111')

SAMPLES = {
    'client': ANN,
    'booking': Booking(
        client_id='c1', client_name='Ann', package_id='p1', package_name='Professional',
        date=datetime(2026, 10, 20, 14, 0), location='Central Park', duration=120, price=599,
    ),
    'gallery': Gallery(client_id='c1', client_name='Ann', title='Autumn', cover_image='cover.jpg', photo_count=40),
    'package': Package(name='Mini', description='Quick session', price=149, duration=30,
                       photo_count=10, features=('30 minutes', '10 photos')),
    'referral': Referral(referrer_id='c1', referrer_name='Ann', referred_client_name='Ben'),
}

GENERATED = {
    'client': {'created_at': NOW, 'referral_count': 0, 'total_bookings': 0, 'total_spent': 0},
    'booking': {'reminder_sent': False},
    'gallery': {'created_at': NOW},
    'package': {},
    'referral': {'date': NOW},
}

PATCHES = {
    'client': {'phone': '(555) 999-0000'},
    'booking': {'location': 'Brooklyn Bridge'},
    'gallery': {'delivery_status': 'processing'},
    'package': {'price': 179},
    'referral': {'status': 'declined'},
}

KINDS = list(SAMPLES)


def _ops(store, kind):
    return (
        getattr(store, f'add_{kind}'),
        getattr(store, f'get_{kind}'),
        getattr(store, f'update_{kind}'),
        getattr(store, f'delete_{kind}'),
    )


def _collection(store, kind):
    return getattr(store, {'client': 'clients', 'booking': 'bookings', 'gallery': 'galleries',
                           'package': 'packages', 'referral': 'referrals'}[kind])


# ---------------------------------------------------------------------------
# _validate_fields: pure function
# ---------------------------------------------------------------------------

def test_validate_fields_accepts_known_fields():
    _validate_fields({'name': 'Ann', 'total_spent': 100}, _UPDATABLE_FIELDS['client'], 'client')


def test_validate_fields_rejects_unknown_field():
    with pytest.raises(ValueError, match='client'):
        _validate_fields({'colour': 'red'}, _UPDATABLE_FIELDS['client'], 'client')


def test_id_is_not_an_updatable_field():
    for kind in KINDS:
        assert 'id' not in _UPDATABLE_FIELDS[kind]


# ---------------------------------------------------------------------------
# Uniform contract, every entity type
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('kind', KINDS)
def test_add_then_get_returns_input_plus_generated_fields(store, kind):
    add, get, _, _ = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    assert get(new_id) == replace(SAMPLES[kind], id=new_id, **GENERATED[kind])


@pytest.mark.parametrize('kind', KINDS)
def test_add_ignores_supplied_id(store, kind):
    add, get, _, _ = _ops(store, kind)
    new_id = add(replace(SAMPLES[kind], id='chosen-by-caller'))
    assert new_id != 'chosen-by-caller'
    assert get('chosen-by-caller') is None


@pytest.mark.parametrize('kind', KINDS)
def test_add_does_not_mutate_input(store, kind):
    add, _, _, _ = _ops(store, kind)
    original = replace(SAMPLES[kind])
    add(original)
    assert original == SAMPLES[kind]
    assert original.id is None


@pytest.mark.parametrize('kind', KINDS)
def test_empty_patch_is_noop(store, kind):
    add, get, update, _ = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    before = _collection(store, kind)
    assert update(new_id, {}) is False
    assert _collection(store, kind) is before
    assert get(new_id) == before[0]


@pytest.mark.parametrize('kind', KINDS)
def test_update_missing_id_leaves_collection_unchanged(store, kind):
    add, _, update, _ = _ops(store, kind)
    add(SAMPLES[kind])
    before = _collection(store, kind)
    assert update('nope', PATCHES[kind]) is False
    assert _collection(store, kind) == before


@pytest.mark.parametrize('kind', KINDS)
def test_update_merges_only_supplied_fields(store, kind):
    add, get, update, _ = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    before = get(new_id)
    assert update(new_id, PATCHES[kind]) is True
    assert get(new_id) == replace(before, **PATCHES[kind])


@pytest.mark.parametrize('kind', KINDS)
def test_update_replaces_collection_object(store, kind):
    add, _, update, _ = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    before = _collection(store, kind)
    update(new_id, PATCHES[kind])
    assert _collection(store, kind) is not before
    # old snapshot still shows the old state
    assert before[0] != _collection(store, kind)[0]


@pytest.mark.parametrize('kind', KINDS)
def test_delete_then_get_returns_none(store, kind):
    add, get, _, delete = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    assert delete(new_id) is True
    assert get(new_id) is None


@pytest.mark.parametrize('kind', KINDS)
def test_delete_missing_id_leaves_collection_unchanged(store, kind):
    add, _, _, delete = _ops(store, kind)
    add(SAMPLES[kind])
    before = _collection(store, kind)
    assert delete('nope') is False
    assert _collection(store, kind) is before


@pytest.mark.parametrize('kind', KINDS)
def test_unknown_update_field_raises(store, kind):
    add, _, update, _ = _ops(store, kind)
    new_id = add(SAMPLES[kind])
    with pytest.raises(ValueError):
        update(new_id, {'not_a_field': 1})


@pytest.mark.parametrize('kind', KINDS)
def test_unknown_field_on_missing_id_is_noop(store, kind):
    add, _, update, _ = _ops(store, kind)
    add(SAMPLES[kind])
    before = _collection(store, kind)
    assert update('nope', {'not_a_field': 1}) is False
    assert _collection(store, kind) is before


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------

def test_patch_cannot_change_id(store):
    client_id = store.add_client(ANN)
    assert store.update_client(client_id, {'id': 'other', 'name': 'Annie'}) is True
    assert store.get_client(client_id).name == 'Annie'
    assert store.get_client('other') is None


def test_patch_with_only_id_is_noop(store):
    client_id = store.add_client(ANN)
    before = store.clients
    assert store.update_client(client_id, {'id': 'other'}) is False
    assert store.clients is before


def test_ids_are_never_reused_after_delete():
    ids = iter(['a', 'a', 'b'])
    store = make_store(id_factory=lambda: next(ids))
    first = store.add_client(ANN)
    store.delete_client(first)
    second = store.add_client(ANN)
    assert (first, second) == ('a', 'b')


def test_seeded_ids_are_not_reissued():
    ids = iter(['1', '2', 'fresh'])
    store = make_store(id_factory=lambda: next(ids), clients=[replace(ANN, id='1'), replace(ANN, id='2')])
    assert store.add_client(ANN) == 'fresh'


def test_id_factory_stuck_on_issued_id_raises():
    store = make_store(id_factory=lambda: 'same')
    store.add_client(ANN)
    with pytest.raises(RuntimeError, match='client'):
        store.add_client(ANN)
    assert len(store.clients) == 1


def test_default_ids_are_unique_strings():
    store = StudioStore()
    ids = {store.add_referral(SAMPLES['referral']) for _ in range(50)}
    assert len(ids) == 50
    assert all(isinstance(i, str) for i in ids)


# ---------------------------------------------------------------------------
# Client counters are stored, not derived
# ---------------------------------------------------------------------------

def test_add_client_zeroes_supplied_counters(store):
    client_id = store.add_client(replace(ANN, total_spent=5000, total_bookings=9, referral_count=4))
    client = store.get_client(client_id)
    assert (client.total_spent, client.total_bookings, client.referral_count) == (0, 0, 0)


def test_adding_bookings_does_not_touch_client_counters(store):
    client_id = store.add_client(ANN)
    store.add_booking(replace(SAMPLES['booking'], client_id=client_id))
    store.add_referral(replace(SAMPLES['referral'], referrer_id=client_id))
    client = store.get_client(client_id)
    assert (client.total_spent, client.total_bookings, client.referral_count) == (0, 0, 0)


def test_counters_change_when_explicitly_updated(store):
    client_id = store.add_client(ANN)
    store.update_client(client_id, {'total_spent': 599, 'total_bookings': 1})
    assert store.get_client(client_id).total_spent == 599


# ---------------------------------------------------------------------------
# No referential integrity
# ---------------------------------------------------------------------------

def test_booking_for_unknown_client_is_accepted(store):
    booking_id = store.add_booking(replace(SAMPLES['booking'], client_id='ghost'))
    assert store.get_booking(booking_id).client_id == 'ghost'


def test_delete_client_does_not_cascade(store):
    client_id = store.add_client(ANN)
    booking_id = store.add_booking(replace(SAMPLES['booking'], client_id=client_id))
    gallery_id = store.add_gallery(replace(SAMPLES['gallery'], client_id=client_id))
    store.delete_client(client_id)
    assert store.get_booking(booking_id).client_name == 'Ann'
    assert store.get_gallery(gallery_id).client_id == client_id


def test_rename_does_not_update_denormalized_names(store):
    client_id = store.add_client(ANN)
    booking_id = store.add_booking(replace(SAMPLES['booking'], client_id=client_id))
    store.update_client(client_id, {'name': 'Ann Lee'})
    assert store.get_booking(booking_id).client_name == 'Ann'


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------

def test_mutations_touch_only_one_collection(store):
    before = (store.clients, store.galleries, store.packages, store.referrals)
    store.add_booking(SAMPLES['booking'])
    assert (store.clients, store.galleries, store.packages, store.referrals) == before
    assert all(a is b for a, b in zip(before, (store.clients, store.galleries, store.packages, store.referrals)))


def test_collections_keep_insertion_order(store):
    ids = [store.add_client(replace(ANN, name=n)) for n in ('A', 'B', 'C')]
    assert [c.id for c in store.clients] == ids


def test_package_features_copied_on_add(store):
    features = ['1 hour session']
    package_id = store.add_package(Package(name='Solo', features=features))
    features.append('sneaked in')
    assert store.get_package(package_id).features == ('1 hour session',)


def test_package_features_copied_on_update(store):
    package_id = store.add_package(Package(name='Solo'))
    features = ['a']
    store.update_package(package_id, {'features': features})
    features.append('sneaked in')
    assert store.get_package(package_id).features == ('a',)


def test_constructor_freezes_package_features():
    features = ['a']
    store = make_store(packages=[Package(id='p', features=features)])
    features.append('sneaked in')
    assert store.get_package('p').features == ('a',)


def test_stored_records_cannot_be_changed_in_place(store):
    client_id = store.add_client(ANN)
    snapshot = store.clients
    with pytest.raises(FrozenInstanceError):
        store.get_client(client_id).total_spent = 10_000
    assert snapshot[0].total_spent == 0
    assert store.get_client(client_id).total_spent == 0


def test_old_snapshot_keeps_old_record_after_update(store):
    client_id = store.add_client(ANN)
    snapshot = store.clients
    store.update_client(client_id, {'total_spent': 599})
    assert snapshot[0].total_spent == 0
    assert store.get_client(client_id).total_spent == 599


def test_stores_are_independent():
    a = make_store()
    b = make_store()
    a.add_client(ANN)
    assert len(a.clients) == 1
    assert b.clients == ()


# ---------------------------------------------------------------------------
# Popular flag
# ---------------------------------------------------------------------------

def test_multiple_popular_packages_allowed_by_default(store):
    store.add_package(Package(name='A', popular=True))
    store.add_package(Package(name='B', popular=True))
    assert [p.popular for p in store.packages] == [True, True]


def test_single_popular_add_clears_others():
    store = make_store(single_popular=True)
    store.add_package(Package(name='A', popular=True))
    store.add_package(Package(name='B', popular=True))
    assert [(p.name, p.popular) for p in store.packages] == [('A', False), ('B', True)]


def test_single_popular_update_clears_others():
    store = make_store(single_popular=True)
    a = store.add_package(Package(name='A', popular=True))
    b = store.add_package(Package(name='B'))
    store.update_package(b, {'popular': True})
    assert store.get_package(a).popular is False
    assert store.get_package(b).popular is True


def test_single_popular_unflagging_leaves_others_alone():
    store = make_store(single_popular=True)
    a = store.add_package(Package(name='A', popular=True))
    b = store.add_package(Package(name='B'))
    store.update_package(b, {'price': 10, 'popular': False})
    assert store.get_package(a).popular is True


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def test_add_emits_created_event():
    bus = EventBus()
    received = []
    bus.on(EVENT_BOOKING_CREATED, received.append)
    store = make_store(bus=bus)
    booking_id = store.add_booking(SAMPLES['booking'])
    assert received[0]['booking_id'] == booking_id
    assert received[0]['booking'].id == booking_id


def test_update_emits_event_with_patch():
    bus = EventBus()
    received = []
    bus.on(EVENT_CLIENT_UPDATED, received.append)
    store = make_store(bus=bus)
    client_id = store.add_client(ANN)
    store.update_client(client_id, {'phone': '1'})
    assert received == [{'client_id': client_id, 'updates': {'phone': '1'}}]


def test_noops_emit_nothing():
    bus = EventBus()
    received = []
    bus.on(EVENT_CLIENT_UPDATED, received.append)
    bus.on(EVENT_CLIENT_DELETED, received.append)
    store = make_store(bus=bus)
    client_id = store.add_client(ANN)
    store.update_client(client_id, {})
    store.update_client('nope', {'phone': '1'})
    store.delete_client('nope')
    assert received == []


def test_delete_emits_event():
    bus = EventBus()
    received = []
    bus.on(EVENT_CLIENT_DELETED, received.append)
    store = make_store(bus=bus)
    client_id = store.add_client(ANN)
    store.delete_client(client_id)
    assert received == [{'client_id': client_id}]


def test_clock_is_injectable(store):
    assert store.now() == NOW
