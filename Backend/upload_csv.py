"""
Command-line bulk registration against a running Alliance Portal API.

Signs in as an admin, uploads the CSV, prints the per-row report and can roll
the batch back again.

Usage:
    python upload_csv.py members.csv --email admin@example.com --password '...'
    python upload_csv.py --rollback <batch_id> --email admin@example.com --password '...'
"""

import argparse
import sys

import requests

API_BASE_URL = "http://localhost:8000/api"


def login(base_url: str, email: str, password: str) -> str:
    """POST the credentials and return the bearer token."""
    resp = requests.post(f"{base_url}/auth/login", json={"email": email, "password": password}, timeout=10)
    resp.raise_for_status()
    return resp.json()["access_token"]


def upload(base_url: str, token: str, path: str, notify: bool = False) -> dict:
    with open(path, "rb") as fh:
        resp = requests.post(
            f"{base_url}/bulk/import",
            headers={"Authorization": f"Bearer {token}"},
            files={"file": (path, fh, "text/csv")},
            data={"notify": str(notify).lower()},
            timeout=None,
        )
    resp.raise_for_status()
    return resp.json()


def rollback(base_url: str, token: str, batch_id: str) -> int:
    resp = requests.delete(
        f"{base_url}/bulk/batches/{batch_id}",
        headers={"Authorization": f"Bearer {token}"},
        params={"confirm": "true"},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()["deleted"]


def print_report(report: dict):
    print(f"  ↑ batch   {report['batch_id']}")
    print(f"  ✓ {report['success']} succeeded / ✗ {report['failed']} failed / {report['skipped']} skipped")
    for failure in report["failures"]:
        print(f"    ✗ {failure['email']}: {failure['error']}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Bulk-register alliance members from a CSV file")
    parser.add_argument("csv", nargs="?")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--base-url", default=API_BASE_URL)
    parser.add_argument("--notify", action="store_true", help="email each new member their login")
    parser.add_argument("--rollback", metavar="BATCH_ID")
    args = parser.parse_args(argv)

    if not args.csv and not args.rollback:
        parser.error("a CSV file or --rollback BATCH_ID is required")

    try:
        token = login(args.base_url, args.email, args.password)
        if args.rollback:
            answer = input(f"Delete every player created by batch {args.rollback}? [y/N] ")
            if answer.strip().lower() != "y":
                print("⏹ Rollback cancelled")
                return 1
            deleted = rollback(args.base_url, token, args.rollback)
            print(f"🧹 Rolled back {deleted} players")
            return 0

        report = upload(args.base_url, token, args.csv, notify=args.notify)
        print_report(report)
        return 0 if report["failed"] == 0 else 2
    except requests.RequestException as e:
        print(f"  ✗ request failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
