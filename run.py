"""
CLI entry point for Albion Stats Sheets.

Usage:
    python run.py provision --input report.json
    python run.py provision --input report.json --owner player@example.com
    python run.py serve                       # start Flask API on port 5000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from albion_sheets.config import LOG_FORMAT, Settings
from albion_sheets.errors import ProvisioningError
from albion_sheets.google_services import build_services
from albion_sheets.models import StatsReport
from albion_sheets.provisioner import Provisioner


def cmd_provision(args, settings: Settings) -> int:
    credentials = Path(args.credentials) if args.credentials else settings.credentials_path
    if credentials is None:
        print("No credentials. Set ALBION_GOOGLE_CREDENTIALS or pass --credentials.")
        return 1

    try:
        data = json.loads(Path(args.input).read_text(encoding="utf-8"))
        report = StatsReport.from_dict(data, default_owner=args.owner or settings.owner_email)
        if args.owner:
            report = replace(report, owner_email=args.owner.strip())
        sheets, access = build_services(credentials)
        provisioner = Provisioner(
            sheets,
            access,
            sheet_name=settings.sheet_name,
            revoke_policy=settings.revoke_policy,
        )
        result = provisioner.provision(report)
    except ProvisioningError as exc:
        print(f"Failed ({exc.kind} error at {exc.state or 'input'}): {exc}")
        return 1
    except json.JSONDecodeError as exc:
        print(f"Failed (input error): {args.input} is not valid JSON: {exc}")
        return 1
    except (OSError, ValueError) as exc:
        # unreadable report file or unusable service-account key
        print(f"Failed (setup error): {exc}")
        return 1

    print(f"Done. {result.document.url}")
    return 0


def cmd_serve(args, settings: Settings) -> int:
    from api import create_app

    app = create_app(settings)
    if args.production:
        from waitress import serve
        print(f"Starting production server on port {args.port}")
        serve(app, host="0.0.0.0", port=args.port, ident=None)
    else:
        app.run(host="0.0.0.0", port=args.port, debug=args.debug)
    return 0


def main():
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    parser = argparse.ArgumentParser(description="Albion Stats Sheets")
    sub = parser.add_subparsers(dest="command")

    # --- provision ---
    prov_p = sub.add_parser("provision", help="Create a spreadsheet from a report JSON file")
    prov_p.add_argument("--input", required=True, help="Path to the stats report JSON")
    prov_p.add_argument("--owner", default=None, help="Email that receives ownership")
    prov_p.add_argument("--credentials", default=None, help="Service-account key (overrides env)")

    # --- serve ---
    srv_p = sub.add_parser("serve", help="Start the Flask API server")
    srv_p.add_argument("--port", type=int, default=5000, help="Port to run server on")
    srv_p.add_argument("--debug", action="store_true", help="Enable debug mode (development only)")
    srv_p.add_argument("--production", action="store_true", help="Serve with Waitress")

    args = parser.parse_args()
    if args.command == "provision":
        sys.exit(cmd_provision(args, settings))
    elif args.command == "serve":
        sys.exit(cmd_serve(args, settings))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
