from __future__ import annotations

import argparse
import importlib

from site_attendance.config import get_settings_module
from site_attendance.database.bootstrap import ensure_admin


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or reset an admin account.")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default="Site Admin")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    ensure_admin(dict(settings.DB_CONFIG), username=args.username, password=args.password, full_name=args.full_name)
    print(f"OK: admin '{args.username}' ready")


if __name__ == "__main__":
    main()
