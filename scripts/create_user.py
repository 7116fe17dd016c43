"""Create an account directly in the DB.

Usage:
  python scripts/create_user.py --email alice@example.com --password '...' --role Tester

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from bug_tracker.auth.crud import create_user
from bug_tracker.config import load_config
from bug_tracker.db import connect, init_db
from bug_tracker.models import ROLES, ROLE_MEMBER


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", choices=list(ROLES), default=ROLE_MEMBER)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        account = create_user(conn, email=args.email, password=args.password, role=args.role)

    print("Created user:")
    print(account.to_api())


if __name__ == "__main__":
    main()
