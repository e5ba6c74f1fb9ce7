#!/usr/bin/env python3
"""
Studio CRM - Interactive Menu Launcher
Runs every command in this process against one shared store, so bookings,
clients and referrals added from the menu last until you exit.

Usage:
    python main.py
"""

import os

import click

from studiocrm.cli.main import cli
from studiocrm.db.seed import create_seeded_store

STORE = create_seeded_store()


def run(args: list[str]):
    """Run a CLI command against the session store and return to menu when done."""
    print()
    try:
        cli.main(args=args, obj=STORE, prog_name="studiocrm", standalone_mode=False)
    except click.ClickException as e:
        e.show()
    except click.Abort:
        print("\n  Cancelled.")
    print()
    input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def dashboard():
    run(["dashboard"])

def clients_list():
    args = ["clients", "list"]
    s = prompt_optional("Search name or email")
    if s: args += ["--search", s]
    run(args)

def clients_show():
    run(["clients", "show", prompt("Client ID")])

def clients_add():
    run(["clients", "add"])

def clients_edit():
    cid = prompt("Client ID")
    args = ["clients", "edit", cid]
    n = prompt_optional("New name")
    e = prompt_optional("New email")
    p = prompt_optional("New phone")
    notes = prompt_optional("New notes")
    if n: args += ["--name", n]
    if e: args += ["--email", e]
    if p: args += ["--phone", p]
    if notes: args += ["--notes", notes]
    run(args)

def clients_delete():
    run(["clients", "delete", prompt("Client ID")])

def bookings_list():
    args = ["bookings", "list"]
    s = prompt_optional("Filter by status (scheduled/completed/cancelled)")
    u = input("  Upcoming only? (y/N): ").strip().lower()
    if s: args += ["--status", s]
    if u == "y": args += ["--upcoming"]
    elif not s and input("  All scheduled, soonest first? (y/N): ").strip().lower() == "y":
        args += ["--scheduled"]
    run(args)

def bookings_add():
    run(["bookings", "add"])

def bookings_complete():
    run(["bookings", "complete", prompt("Booking ID")])

def bookings_cancel():
    run(["bookings", "cancel", prompt("Booking ID")])

def galleries_list():
    args = ["galleries", "list"]
    if input("  Pending only? (y/N): ").strip().lower() == "y":
        args += ["--pending"]
    run(args)

def galleries_add():
    run(["galleries", "add"])

def galleries_process():
    run(["galleries", "process", prompt("Gallery ID")])

def galleries_deliver():
    gid = prompt("Gallery ID")
    args = ["galleries", "deliver", gid]
    link = prompt_optional("Access link")
    if link: args += ["--link", link]
    run(args)

def packages_list():
    run(["packages", "list"])

def packages_add():
    args = ["packages", "add"]
    print("  Features, one per line (empty line to finish)")
    while True:
        feature = input("    - ").strip()
        if not feature:
            break
        args += ["--feature", feature]
    if input("  Most popular? (y/N): ").strip().lower() == "y":
        args += ["--popular"]
    run(args)

def packages_popular():
    run(["packages", "popular", prompt("Package ID")])

def packages_delete():
    run(["packages", "delete", prompt("Package ID")])

def referrals_list():
    run(["referrals", "list"])

def referrals_add():
    run(["referrals", "add"])

def referrals_convert():
    rid = prompt("Referral ID")
    args = ["referrals", "convert", rid]
    v = prompt_optional("Value")
    if v: args += ["--value", v]
    run(args)

def referrals_decline():
    run(["referrals", "decline", prompt("Referral ID")])

def referrals_stats():
    run(["referrals", "stats"])

def reconcile():
    args = ["reconcile"]
    if input("  Also refresh copied names? (y/N): ").strip().lower() == "y":
        args += ["--names"]
    run(args)


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("OVERVIEW", [
        ("Dashboard",                    dashboard),
    ]),
    ("CLIENTS", [
        ("List clients",                 clients_list),
        ("Show client details",          clients_show),
        ("Add new client",               clients_add),
        ("Edit client",                  clients_edit),
        ("Delete client",                clients_delete),
    ]),
    ("BOOKINGS", [
        ("List bookings",                bookings_list),
        ("Book a session",               bookings_add),
        ("Mark booking complete",        bookings_complete),
        ("Cancel booking",               bookings_cancel),
    ]),
    ("GALLERIES", [
        ("List galleries",               galleries_list),
        ("Create gallery",               galleries_add),
        ("Start processing gallery",     galleries_process),
        ("Mark gallery delivered",       galleries_deliver),
    ]),
    ("PACKAGES", [
        ("List packages",                packages_list),
        ("Add package",                  packages_add),
        ("Toggle popular badge",         packages_popular),
        ("Delete package",               packages_delete),
    ]),
    ("REFERRALS", [
        ("List referrals",               referrals_list),
        ("Track referral",               referrals_add),
        ("Convert referral",             referrals_convert),
        ("Decline referral",             referrals_decline),
        ("Referral stats",               referrals_stats),
    ]),
    ("MAINTENANCE", [
        ("Reconcile client counters",    reconcile),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   STUDIO CRM - COMMAND CENTRE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
        except ValueError:
            print("\n  Please enter a number.")
            input("  Press Enter to continue...")
            continue

        if n in numbering:
            clear()
            numbering[n]()
        else:
            print(f"\n  Invalid selection: {choice}")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
