import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from studymate.config import load_config
from studymate.db import connect, init_db, upsert_app_config


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        upsert_app_config(conn, "schema_version", cfg.SCHEMA_VERSION)

    print(f"DB initialized: {cfg.DB_DSN}")


if __name__ == "__main__":
    main()
