"""
Seed Data
Fixture entities every new session starts from. Nothing is persisted, so each
process begins with exactly this state.
"""

from datetime import datetime
from typing import List

from studiocrm.db.memory import StudioStore
from studiocrm.models import Booking, Client, Gallery, Package, Referral


def seed_packages() -> List[Package]:
    return [
        Package(
            id='1',
            name='Essential',
            description='Perfect for quick sessions and portraits',
            price=299,
            duration=60,
            photo_count=20,
            features=('1 hour session', '20 edited photos', 'Online gallery', 'Print release'),
        ),
        Package(
            id='2',
            name='Professional',
            description='Ideal for events and special occasions',
            price=599,
            duration=120,
            photo_count=50,
            features=(
                '2 hour session', '50 edited photos', 'Online gallery', 'Print release',
                '2 locations', 'Outfit changes',
            ),
            popular=True,
        ),
        Package(
            id='3',
            name='Premium',
            description='Complete coverage for your important moments',
            price=999,
            duration=240,
            photo_count=100,
            features=(
                '4 hour session', '100 edited photos', 'Premium online gallery', 'Print release',
                'Multiple locations', 'Unlimited outfit changes', 'Same-day preview',
            ),
        ),
    ]


def seed_clients() -> List[Client]:
    return [
        Client(
            id='1',
            name='Emma Watson',
            email='emma.watson@email.com',
            phone='(555) 123-4567',
            avatar='https://images.unsplash.com/photo-1494790108377-be9c29b29330?w=100&h=100&fit=crop',
            referral_count=2,
            total_bookings=3,
            total_spent=1797,
            created_at=datetime(2024, 1, 15),
            notes='Loves outdoor sessions, prefers golden hour lighting',
        ),
        Client(
            id='2',
            name='James Rodriguez',
            email='james.r@email.com',
            phone='(555) 234-5678',
            referral_count=0,
            total_bookings=1,
            total_spent=599,
            created_at=datetime(2024, 2, 20),
        ),
    ]


def seed_galleries() -> List[Gallery]:
    return [
        Gallery(
            id='1',
            client_id='1',
            client_name='Emma Watson',
            title='Spring Portrait Session',
            description='Beautiful outdoor spring portraits',
            cover_image='https://images.unsplash.com/photo-1522621032211-ac0031dfbddc?w=800',
            photo_count=45,
            created_at=datetime(2024, 3, 10),
            delivery_status='delivered',
            access_link='https://gallery.example.com/spring-emma',
        ),
        Gallery(
            id='2',
            client_id='2',
            client_name='James Rodriguez',
            title='Family Session',
            description='Annual family photos',
            cover_image='https://images.unsplash.com/photo-1511895426328-dc8714191300?w=800',
            photo_count=30,
            created_at=datetime(2024, 3, 15),
            delivery_status='processing',
        ),
    ]


def seed_bookings() -> List[Booking]:
    return [
        Booking(
            id='1',
            client_id='1',
            client_name='Emma Watson',
            package_id='2',
            package_name='Professional',
            date=datetime(2024, 4, 15, 14, 0),
            location='Central Park, New York',
            status='scheduled',
            duration=120,
            price=599,
            notes='Client prefers sunset timing',
            reminder_sent=False,
        ),
    ]


def seed_referrals() -> List[Referral]:
    return [
        Referral(
            id='1',
            referrer_id='1',
            referrer_name='Emma Watson',
            referred_client_name='Sarah Johnson',
            status='converted',
            date=datetime(2024, 2, 1),
            value=599,
        ),
    ]


def create_seeded_store(**kwargs) -> StudioStore:
    """
    Build a store holding the fixture data.
    Keyword arguments (id_factory, clock, bus, single_popular) go to StudioStore.
    """
    return StudioStore(
        clients=seed_clients(),
        bookings=seed_bookings(),
        galleries=seed_galleries(),
        packages=seed_packages(),
        referrals=seed_referrals(),
        **kwargs,
    )
