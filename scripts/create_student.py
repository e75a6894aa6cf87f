"""Create a student account in the configured DB.

Usage:
  python scripts/create_student.py --name "Alice Doe" --username alice --email a@x.com --password '...'

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from studymate.config import load_config
from studymate.db import init_db, connect
from studymate.auth.crud import create_student


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--name", required=True)
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--allowance", type=float, default=None, help="Optional monthly allowance")
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        s = create_student(
            conn,
            full_name=args.name,
            username=args.username,
            email=args.email,
            password=args.password,
        )
        if args.allowance is not None:
            from studymate.budget.crud import set_allowance

            s["monthly_allowance"] = set_allowance(conn, int(s["student_id"]), args.allowance)

    print("Created student:")
    print(s)


if __name__ == "__main__":
    main()
