#!/usr/bin/env python3
"""
Voyage Report API CLI Tool.

Command-line interface for administrative tasks:
- Vessel master data (add, list)
- Bunker ledger conservation check
- Database operations
- Health checks

Usage:
    python -m api.cli add-vessel --name "Ocean Star" --bls 50000
    python -m api.cli list-vessels
    python -m api.cli verify-ledger --vessel-id 1
    python -m api.cli check-health
"""
import argparse
import sys
from typing import Optional


def add_vessel(
    name: str,
    bls: float,
    flag: Optional[str] = None,
    captain: Optional[str] = None,
) -> None:
    """Register a vessel."""
    from api.database import get_db_context
    from api.store import SqlReportStore
    from src.reporting import Vessel

    if bls < 0:
        print("\nError: --bls must not be negative.")
        sys.exit(1)

    with get_db_context() as db:
        vessel = SqlReportStore(db).add_vessel(
            Vessel(id=0, name=name, flag=flag, current_captain=captain, bls=bls)
        )

    print(f"\nVessel {vessel.id} '{vessel.name}' created (BLS {vessel.bls:.1f}).")


def list_vessels() -> None:
    """List all vessels with their active voyage."""
    from api.database import get_db_context
    from api.store import SqlReportStore

    with get_db_context() as db:
        store = SqlReportStore(db)
        rows = [(v, store.get_active_voyage(v.id)) for v in store.list_vessels()]

    if not rows:
        print("\nNo vessels found.")
        return

    print("\n" + "=" * 80)
    print("VESSELS")
    print("=" * 80)
    print(f"{'ID':<6} {'Name':<24} {'Flag':<12} {'BLS':>10}  {'Active voyage':<24}")
    print("-" * 80)

    for vessel, voyage in rows:
        print(
            f"{vessel.id:<6} "
            f"{vessel.name[:22]:<24} "
            f"{(vessel.flag or '-')[:10]:<12} "
            f"{vessel.bls:>10.1f}  "
            f"{voyage.voyage_number if voyage else '-':<24}"
        )

    print("=" * 80)
    print(f"Total: {len(rows)} vessel(s)\n")


def verify_ledger(vessel_id: Optional[int] = None) -> None:
    """Re-check ROB conservation along each vessel's approved reports."""
    from api.database import get_db_context
    from api.store import SqlReportStore
    from src.reporting import BunkerLedger

    with get_db_context() as db:
        store = SqlReportStore(db)
        ledger = BunkerLedger(store)
        vessel_ids = [vessel_id] if vessel_id is not None else [v.id for v in store.list_vessels()]
        results = {vid: ledger.verify_chain(vid) for vid in vessel_ids}

    failed = False
    for vid, issues in results.items():
        if not issues:
            print(f"Vessel {vid}: ledger OK")
            continue
        failed = True
        print(f"Vessel {vid}: {len(issues)} discrepancy(ies)")
        for issue in issues:
            if issue.substance:
                print(
                    f"  report {issue.report_id}: {issue.substance} "
                    f"expected {issue.expected:.3f}, recorded {issue.actual:.3f}"
                )
            else:
                print(f"  report {issue.report_id}: {issue.message}")

    if failed:
        sys.exit(1)


def check_health(url: str = "http://localhost:8000/api/health") -> None:
    """Check API health."""
    import requests

    try:
        response = requests.get(url, timeout=5)
        if response.status_code == 200:
            data = response.json()
            print(f"\nAPI Status: {data.get('status', 'unknown')}")
            print(f"Version: {data.get('version', 'unknown')}")
            print(f"Timestamp: {data.get('timestamp', 'unknown')}")
        else:
            print(f"\nAPI returned status code: {response.status_code}")
            sys.exit(1)
    except requests.exceptions.ConnectionError:
        print("\nError: Could not connect to API. Is the server running?")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\nError: {e}")
        sys.exit(1)


def init_db() -> None:
    """Initialize the database."""
    from api.database import init_db as do_init

    print("Initializing database...")
    do_init()
    print("Database initialized successfully.")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Voyage Report API CLI Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Register a vessel:
    python -m api.cli add-vessel --name "Ocean Star" --flag Panama --captain "J. Doe" --bls 50000

  List vessels:
    python -m api.cli list-vessels

  Check ROB conservation for one vessel (all vessels when omitted):
    python -m api.cli verify-ledger --vessel-id 1

  Check API health:
    python -m api.cli check-health

  Initialize database:
    python -m api.cli init-db
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # add-vessel
    vessel_parser = subparsers.add_parser("add-vessel", help="Register a vessel")
    vessel_parser.add_argument("--name", required=True, help="Vessel name")
    vessel_parser.add_argument("--bls", type=float, default=0.0, help="Cargo capacity limit (BLS)")
    vessel_parser.add_argument("--flag", help="Flag state")
    vessel_parser.add_argument("--captain", help="Current captain")

    # list-vessels
    subparsers.add_parser("list-vessels", help="List all vessels")

    # verify-ledger
    ledger_parser = subparsers.add_parser("verify-ledger", help="Check bunker ROB conservation")
    ledger_parser.add_argument("--vessel-id", type=int, help="Vessel to check (default: all)")

    # check-health
    health_parser = subparsers.add_parser("check-health", help="Check API health")
    health_parser.add_argument("--url", default="http://localhost:8000/api/health", help="Health endpoint")

    # init-db
    subparsers.add_parser("init-db", help="Initialize the database")

    args = parser.parse_args(argv)

    if args.command == "add-vessel":
        add_vessel(args.name, args.bls, args.flag, args.captain)
    elif args.command == "list-vessels":
        list_vessels()
    elif args.command == "verify-ledger":
        verify_ledger(args.vessel_id)
    elif args.command == "check-health":
        check_health(args.url)
    elif args.command == "init-db":
        init_db()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
