#!/usr/bin/env python3
"""
Studio CRM Terminal CLI
Command-line interface for the photography studio back office.

State lives in a StudioStore carried on the click context object. A plain
`studiocrm ...` invocation gets a freshly seeded store; the interactive menu
(main.py) passes the same store to every command so changes last the session.
"""

import logging
import re
import click
from typing import Optional

from studiocrm.config import config
from studiocrm.db.memory import StudioStore
from studiocrm.db.seed import create_seeded_store
from studiocrm.engine import crm, stats
from studiocrm.logging_config import configure_logging, log_call
from studiocrm.models import BOOKING_STATUSES, Client, Package

_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

_DATE_FORMATS = ['%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M', '%Y-%m-%d']


def _money(amount) -> str:
    return f"{config.CURRENCY_SYMBOL}{amount or 0:,.0f}"


def _when(value) -> str:
    return value.strftime('%Y-%m-%d %H:%M') if value else '(no date)'


def _short(value: Optional[str], width: int) -> str:
    return (value or '')[:width]


def _not_found(kind: str, entity_id: str, command: str):
    logging.getLogger("studiocrm").warning(f"{command} | {kind}_id={entity_id} not found")
    click.echo(f"{kind.capitalize()} {entity_id} not found.", err=True)


def _validate_email(ctx, param, value):
    if value and not _EMAIL_RE.match(value):
        raise click.BadParameter("invalid email address")
    return value


@click.group()
@click.pass_context
def cli(ctx):
    """Studio CRM - Photography Studio Management"""
    configure_logging()
    if ctx.obj is None:
        ctx.obj = create_seeded_store()


# =============================================================================
# DASHBOARD
# =============================================================================

@cli.command('dashboard')
@click.pass_obj
@log_call
def dashboard(store: StudioStore):
    """Business overview: stats, upcoming shoots, pending deliveries, top clients"""
    summary = stats.dashboard_summary(store)

    click.echo(f"\n{'='*70}")
    click.echo("DASHBOARD")
    click.echo(f"{'='*70}")
    click.echo(f"Total Clients:     {summary.total_clients}")
    click.echo(f"Revenue:           {_money(summary.revenue)}")
    click.echo(f"Upcoming Shoots:   {summary.upcoming_count}")
    click.echo(f"Active Referrals:  {summary.active_referrals}")

    click.echo("\nUPCOMING BOOKINGS")
    click.echo("-" * 70)
    upcoming = stats.upcoming_bookings(store, limit=config.UPCOMING_LIMIT)
    if not upcoming:
        click.echo("No upcoming bookings.")
    for b in upcoming:
        click.echo(f"{_when(b.date):<18} {_short(b.client_name, 24):<26} {_short(b.package_name, 16):<18}")

    click.echo("\nPENDING DELIVERIES")
    click.echo("-" * 70)
    pending = stats.pending_galleries(store)
    if not pending:
        click.echo("All galleries delivered.")
    for g in pending:
        click.echo(f"{_short(g.title, 30):<32} {_short(g.client_name, 24):<26} {g.delivery_status:<10}")

    click.echo("\nTOP CLIENTS")
    click.echo("-" * 70)
    for c in stats.top_clients(store):
        click.echo(
            f"{_short(c.name, 28):<30} {c.total_bookings:>3} bookings  "
            f"{c.referral_count:>3} referrals  {_money(c.total_spent):>10}"
        )
    click.echo()


# =============================================================================
# CLIENTS COMMANDS
# =============================================================================

@cli.group()
def clients():
    """Manage clients"""
    pass


@clients.command('list')
@click.option('--search', help='Filter by name or email (case-insensitive)')
@click.pass_obj
@log_call
def clients_list(store: StudioStore, search):
    """List clients"""
    results = stats.search_clients(store, search)

    if not results:
        click.echo("No clients found.")
        return

    click.echo(f"\nFound {len(results)} clients:\n")
    click.echo(f"{'ID':<38} {'Name':<24} {'Email':<28} {'Spent':>10}")
    click.echo("-" * 102)
    for c in results:
        click.echo(
            f"{c.id:<38} {_short(c.name, 22):<24} {_short(c.email, 26):<28} {_money(c.total_spent):>10}"
        )


@clients.command('show')
@click.argument('client_id')
@click.pass_obj
@log_call
def clients_show(store: StudioStore, client_id):
    """Show full client details"""
    client = store.get_client(client_id)
    if not client:
        _not_found('client', client_id, 'clients_show')
        return

    live = stats.client_activity(store, client_id)

    click.echo(f"\n{'='*70}")
    click.echo(f"CLIENT {client.id}: {client.name}")
    click.echo(f"{'='*70}")
    click.echo(f"Email:        {client.email or '(not set)'}")
    click.echo(f"Phone:        {client.phone or '(not set)'}")
    click.echo(f"Referred by:  {client.referred_by or '(none)'}")
    click.echo(f"Bookings:     {client.total_bookings} (on record: {live.total_bookings})")
    click.echo(f"Total spent:  {_money(client.total_spent)} (on record: {_money(live.total_spent)})")
    click.echo(f"Referrals:    {client.referral_count} (on record: {live.referral_count})")
    click.echo(f"Created:      {client.created_at}")
    if client.notes:
        click.echo(f"\nNotes:\n{client.notes}")
    click.echo()


@clients.command('add')
@click.option('--name', prompt='Name')
@click.option('--email', prompt='Email', callback=_validate_email)
@click.option('--phone', prompt='Phone')
@click.option('--notes', default=None, help='Free-form notes')
@click.option('--referred-by', default=None, help='ID of the referring client')
@click.pass_obj
@log_call
def clients_add(store: StudioStore, name, email, phone, notes, referred_by):
    """Add a new client"""
    client_id = store.add_client(Client(
        name=name,
        email=email,
        phone=phone,
        notes=notes,
        referred_by=referred_by,
    ))
    click.echo(f"\n✓ Created client {client_id}: {name}")


@clients.command('edit')
@click.argument('client_id')
@click.option('--name', help='Update name')
@click.option('--email', callback=_validate_email, help='Update email')
@click.option('--phone', help='Update phone')
@click.option('--notes', help='Update notes')
@click.pass_obj
@log_call
def clients_edit(store: StudioStore, client_id, name, email, phone, notes):
    """Edit a client (use options to set fields)"""
    updates = {}
    if name:
        updates['name'] = name
    if email:
        updates['email'] = email
    if phone:
        updates['phone'] = phone
    if notes:
        updates['notes'] = notes

    if not updates:
        click.echo("No updates specified. Use --name, --email, --phone, or --notes", err=True)
        return

    if store.update_client(client_id, updates):
        click.echo(f"✓ Updated client {client_id}")
    else:
        _not_found('client', client_id, 'clients_edit')


@clients.command('delete')
@click.argument('client_id')
@click.pass_obj
@log_call
def clients_delete(store: StudioStore, client_id):
    """Delete a client (bookings, galleries and referrals are kept)"""
    if store.delete_client(client_id):
        click.echo(f"✓ Deleted client {client_id}")
    else:
        _not_found('client', client_id, 'clients_delete')


# =============================================================================
# BOOKINGS COMMANDS
# =============================================================================

@cli.group()
def bookings():
    """Manage photo session bookings"""
    pass


@bookings.command('list')
@click.option('--status', type=click.Choice(BOOKING_STATUSES), help='Filter by status')
@click.option('--upcoming', is_flag=True, help='Only scheduled bookings still ahead')
@click.option('--scheduled', is_flag=True, help='All scheduled bookings, soonest first')
@click.pass_obj
@log_call
def bookings_list(store: StudioStore, status, upcoming, scheduled):
    """List bookings"""
    if upcoming:
        results = stats.upcoming_bookings(store)
    elif scheduled:
        results = stats.scheduled_bookings(store)
    elif status:
        results = stats.bookings_by_status(store, status)
    else:
        results = list(store.bookings)

    if not results:
        click.echo("No bookings found.")
        return

    click.echo(f"\nFound {len(results)} bookings:\n")
    click.echo(f"{'ID':<38} {'Date':<18} {'Client':<22} {'Package':<14} {'Status':<10} {'Price':>8}")
    click.echo("-" * 114)
    for b in results:
        click.echo(
            f"{b.id:<38} {_when(b.date):<18} {_short(b.client_name, 20):<22} "
            f"{_short(b.package_name, 12):<14} {b.status:<10} {_money(b.price):>8}"
        )


@bookings.command('add')
@click.option('--client', 'client_id', prompt='Client ID')
@click.option('--package', 'package_id', prompt='Package ID')
@click.option('--date', 'session_date', prompt='Date (YYYY-MM-DD HH:MM)',
              type=click.DateTime(formats=_DATE_FORMATS))
@click.option('--location', prompt='Location')
@click.option('--notes', default=None)
@click.pass_obj
@log_call
def bookings_add(store: StudioStore, client_id, package_id, session_date, location, notes):
    """Book a session for a client"""
    booking_id = crm.book_session(store, client_id, package_id, session_date, location, notes)
    if booking_id is None:
        click.echo("Client or package not found. Booking not created.", err=True)
        return
    click.echo(f"\n✓ Created booking {booking_id}")


@bookings.command('complete')
@click.argument('booking_id')
@click.pass_obj
@log_call
def bookings_complete(store: StudioStore, booking_id):
    """Mark a scheduled booking as completed"""
    if crm.complete_booking(store, booking_id):
        click.echo(f"✓ Booking {booking_id} marked as completed")
    else:
        click.echo(f"Booking {booking_id} not found or not scheduled.", err=True)


@bookings.command('cancel')
@click.argument('booking_id')
@click.pass_obj
@log_call
def bookings_cancel(store: StudioStore, booking_id):
    """Cancel a scheduled booking"""
    if crm.cancel_booking(store, booking_id):
        click.echo(f"✓ Booking {booking_id} cancelled")
    else:
        click.echo(f"Booking {booking_id} not found or not scheduled.", err=True)


# =============================================================================
# GALLERIES COMMANDS
# =============================================================================

@cli.group()
def galleries():
    """Manage client photo galleries"""
    pass


@galleries.command('list')
@click.option('--pending', is_flag=True, help='Only galleries not yet delivered')
@click.pass_obj
@log_call
def galleries_list(store: StudioStore, pending):
    """List galleries"""
    results = stats.pending_galleries(store) if pending else list(store.galleries)

    if not results:
        click.echo("No galleries found.")
        return

    click.echo(f"\nFound {len(results)} galleries:\n")
    click.echo(f"{'ID':<38} {'Title':<28} {'Client':<22} {'Photos':>6} {'Status':<10}")
    click.echo("-" * 108)
    for g in results:
        click.echo(
            f"{g.id:<38} {_short(g.title, 26):<28} {_short(g.client_name, 20):<22} "
            f"{g.photo_count:>6} {g.delivery_status:<10}"
        )


@galleries.command('add')
@click.option('--client', 'client_id', prompt='Client ID')
@click.option('--title', prompt='Title')
@click.option('--cover', 'cover_image', default='', help='Cover image URL')
@click.option('--photos', 'photo_count', type=int, default=0, help='Number of photos')
@click.option('--description', default=None)
@click.pass_obj
@log_call
def galleries_add(store: StudioStore, client_id, title, cover_image, photo_count, description):
    """Create a gallery for a client"""
    gallery_id = crm.create_gallery(
        store, client_id, title,
        cover_image=cover_image, photo_count=photo_count, description=description,
    )
    if gallery_id is None:
        _not_found('client', client_id, 'galleries_add')
        return
    click.echo(f"\n✓ Created gallery {gallery_id}: {title}")


@galleries.command('process')
@click.argument('gallery_id')
@click.pass_obj
@log_call
def galleries_process(store: StudioStore, gallery_id):
    """Start processing a pending gallery"""
    if crm.start_gallery_processing(store, gallery_id):
        click.echo(f"✓ Gallery {gallery_id} is now processing")
    else:
        click.echo(f"Gallery {gallery_id} not found or not pending.", err=True)


@galleries.command('deliver')
@click.argument('gallery_id')
@click.option('--link', 'access_link', default=None, help='Client access link')
@click.pass_obj
@log_call
def galleries_deliver(store: StudioStore, gallery_id, access_link):
    """Mark a processing gallery as delivered"""
    if crm.mark_gallery_delivered(store, gallery_id, access_link):
        click.echo(f"✓ Gallery {gallery_id} delivered")
    else:
        click.echo(f"Gallery {gallery_id} not found or not processing.", err=True)


# =============================================================================
# PACKAGES COMMANDS
# =============================================================================

@cli.group()
def packages():
    """Manage service packages"""
    pass


@packages.command('list')
@click.pass_obj
@log_call
def packages_list(store: StudioStore):
    """List packages with their features"""
    if not store.packages:
        click.echo("No packages found.")
        return

    for p in store.packages:
        flag = "  ★ most popular" if p.popular else ""
        click.echo(f"\n{p.name} ({p.id}){flag}")
        click.echo(f"  {_money(p.price)} · {p.duration} min · {p.photo_count} photos")
        if p.description:
            click.echo(f"  {p.description}")
        for feature in p.features:
            click.echo(f"  - {feature}")
    click.echo()


@packages.command('add')
@click.option('--name', prompt='Name')
@click.option('--description', prompt='Description', default='')
@click.option('--price', prompt='Price', type=float)
@click.option('--duration', prompt='Duration (minutes)', type=int)
@click.option('--photos', 'photo_count', prompt='Photo count', type=int)
@click.option('--feature', 'features', multiple=True, help='Feature line (repeatable)')
@click.option('--popular', is_flag=True, help='Mark as most popular')
@click.pass_obj
@log_call
def packages_add(store: StudioStore, name, description, price, duration, photo_count, features, popular):
    """Add a new service package"""
    package_id = store.add_package(Package(
        name=name,
        description=description,
        price=price,
        duration=duration,
        photo_count=photo_count,
        features=[f.strip() for f in features if f.strip()],
        popular=popular,
    ))
    click.echo(f"\n✓ Created package {package_id}: {name}")


@packages.command('popular')
@click.argument('package_id')
@click.pass_obj
@log_call
def packages_popular(store: StudioStore, package_id):
    """Toggle the "most popular" badge on a package"""
    popular = crm.toggle_package_popular(store, package_id)
    if popular is None:
        _not_found('package', package_id, 'packages_popular')
    elif popular:
        click.echo(f"✓ Package {package_id} marked as most popular")
    else:
        click.echo(f"✓ Removed popular badge from package {package_id}")


@packages.command('delete')
@click.argument('package_id')
@click.pass_obj
@log_call
def packages_delete(store: StudioStore, package_id):
    """Delete a package (existing bookings keep their copied name and price)"""
    if store.delete_package(package_id):
        click.echo(f"✓ Deleted package {package_id}")
    else:
        _not_found('package', package_id, 'packages_delete')


# =============================================================================
# REFERRALS COMMANDS
# =============================================================================

@cli.group()
def referrals():
    """Track client referrals"""
    pass


@referrals.command('list')
@click.pass_obj
@log_call
def referrals_list(store: StudioStore):
    """List referrals, newest first"""
    results = stats.recent_referrals(store)

    if not results:
        click.echo("No referrals yet.")
        return

    click.echo(f"\n{'ID':<38} {'Referrer':<22} {'Referred':<22} {'Status':<10} {'Value':>8}")
    click.echo("-" * 104)
    for r in results:
        value = _money(r.value) if r.value is not None else ''
        click.echo(
            f"{r.id:<38} {_short(r.referrer_name, 20):<22} "
            f"{_short(r.referred_client_name, 20):<22} {r.status:<10} {value:>8}"
        )


@referrals.command('add')
@click.option('--referrer', 'referrer_id', prompt='Referrer client ID')
@click.option('--name', 'referred_client_name', prompt='Referred client name')
@click.pass_obj
@log_call
def referrals_add(store: StudioStore, referrer_id, referred_client_name):
    """Track a new referral"""
    referral_id = crm.track_referral(store, referrer_id, referred_client_name)
    if referral_id is None:
        _not_found('client', referrer_id, 'referrals_add')
        return
    click.echo(f"\n✓ Tracked referral {referral_id}")


@referrals.command('convert')
@click.argument('referral_id')
@click.option('--value', type=float, default=None, help='Referral value (default from config)')
@click.pass_obj
@log_call
def referrals_convert(store: StudioStore, referral_id, value):
    """Mark a pending referral as converted"""
    if crm.convert_referral(store, referral_id, value):
        click.echo(f"✓ Referral {referral_id} marked as converted")
    else:
        click.echo(f"Referral {referral_id} not found or not pending.", err=True)


@referrals.command('decline')
@click.argument('referral_id')
@click.pass_obj
@log_call
def referrals_decline(store: StudioStore, referral_id):
    """Mark a pending referral as declined"""
    if crm.decline_referral(store, referral_id):
        click.echo(f"✓ Referral {referral_id} marked as declined")
    else:
        click.echo(f"Referral {referral_id} not found or not pending.", err=True)


@referrals.command('stats')
@click.pass_obj
@log_call
def referrals_stats(store: StudioStore):
    """Referral totals, conversion rate and top referrers"""
    click.echo(f"\nTotal referrals:  {len(store.referrals)}")
    click.echo(f"Conversion rate:  {stats.conversion_rate(store):.0f}%")
    click.echo(f"Total value:      {_money(stats.total_referral_value(store))}")

    click.echo("\nTOP REFERRERS")
    click.echo("-" * 50)
    top = stats.top_referrers(store)
    if not top:
        click.echo("No referrers yet.")
    for c in top:
        click.echo(f"{_short(c.name, 30):<32} {c.referral_count:>3} referrals")
    click.echo()


# =============================================================================
# MAINTENANCE
# =============================================================================

@cli.command('reconcile')
@click.option('--client', 'client_id', default=None, help='Only this client')
@click.option('--names', is_flag=True, help='Also refresh copied client/package names')
@click.pass_obj
@log_call
def reconcile(store: StudioStore, client_id, names):
    """Recompute client counters from bookings and referrals"""
    changed = crm.recompute_client_counters(store, client_id)
    click.echo(f"✓ Counters updated for {len(changed)} clients")
    if names:
        refreshed = crm.refresh_display_names(store, client_id)
        click.echo(f"✓ Display names refreshed on {refreshed} records")


if __name__ == '__main__':
    cli()
