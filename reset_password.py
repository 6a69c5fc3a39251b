#!/usr/bin/env python3
"""
Create a staff account or reset its password in the academy database.

The script never reads or reveals existing passwords.  It stores a new
PBKDF2 hash for ``--username``; if no such staff account exists it is
created with ``--role`` (default ``admin``).  Pending migrations are
applied first, so it also works against a fresh database.

Usage:
    python reset_password.py --username admin --password "NewStrongPass!234"
    python reset_password.py --db ./academy.db --username maria --role receptionist

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import sys
from typing import Optional, Sequence

from academy_api.app.core import db
from academy_api.app.core.config import settings
from academy_api.app.core.security import STAFF_ROLES, hash_password


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Create or reset an academy staff account.")
    ap.add_argument("--db", help="Path to the SQLite database (defaults to DATABASE_URL)")
    ap.add_argument("--username", required=True, help="Staff username to create or update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    ap.add_argument("--role", choices=sorted(STAFF_ROLES), default="admin", help="Role for a new account")
    args = ap.parse_args(argv)

    if args.db:
        settings.database_url = args.db

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must have at least 6 characters.", file=sys.stderr)
        return 1

    db.init_db()
    hashed = hash_password(new_password)
    with db.transaction() as cursor:
        row = cursor.execute("SELECT id FROM users WHERE username = ?", (args.username,)).fetchone()
        if row:
            cursor.execute(
                "UPDATE users SET password_hash = ?, status = 'active', updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hashed, row["id"]),
            )
            print(f"[+] Password updated for staff user: {args.username}")
        else:
            cursor.execute(
                "INSERT INTO users (id, username, password_hash, role) VALUES (?, ?, ?, ?)",
                (db.new_id(), args.username, hashed, args.role),
            )
            print(f"[+] Created {args.role} account: {args.username}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
