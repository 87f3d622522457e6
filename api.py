"""
Albion Stats Sheets — Flask API

HTTP entry point used by the guild tool to turn a stats report into a
Google Sheet owned by the requesting player.

Endpoints
---------
POST /api/v1/spreadsheets
    Provision a spreadsheet from a stats report.  Returns ``{"url": ...}``.

GET  /api/v1/health
    Liveness probe.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from albion_sheets.config import LOG_FORMAT, Settings
from albion_sheets.errors import ProvisioningError
from albion_sheets.google_services import build_services
from albion_sheets.models import StatsReport
from albion_sheets.provisioner import Provisioner

logger = logging.getLogger("albion.api")

GENERIC_ERROR = {"message": "Internal Server Error"}


def default_provisioner_factory(settings: Settings) -> Callable[[], Provisioner]:
    """Build a ``Provisioner`` with fresh Google clients for each request."""
    def factory() -> Provisioner:
        if settings.credentials_path is None:
            raise ProvisioningError(
                "No credentials. Set ALBION_GOOGLE_CREDENTIALS or place a "
                "service-account .json in the Credentials/ folder."
            )
        sheets, access = build_services(settings.credentials_path)
        return Provisioner(
            sheets,
            access,
            sheet_name=settings.sheet_name,
            revoke_policy=settings.revoke_policy,
        )
    return factory


def create_app(
    settings: Optional[Settings] = None,
    provisioner_factory: Optional[Callable[[], Provisioner]] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    factory = provisioner_factory or default_provisioner_factory(settings)

    app = Flask(__name__)
    CORS(app)

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------
    @app.route("/api/v1/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "engine": "Albion Stats Sheets v1.0"})

    # -----------------------------------------------------------------------
    # Provision spreadsheet
    # -----------------------------------------------------------------------
    @app.route("/api/v1/spreadsheets", methods=["POST"])
    def create_spreadsheet():
        """Create and fill a spreadsheet.

        Expects the guild tool's JSON body::

            {
                "avg":     {"title": ..., "fieldLabels": {...}, "rows": [...]},
                "members": {...},
                "solo":    {...},
                "email":   "player@example.com"   // optional if ALBION_OWNER_EMAIL is set
            }

        Every failure answers with the same 500 body; the error kind is
        only logged.
        """
        try:
            data = json.loads(request.get_data(as_text=True) or "null")
            report = StatsReport.from_dict(data, default_owner=settings.owner_email)
            result = factory().provision(report)
        except ProvisioningError as exc:
            logger.error(
                "Provisioning failed [%s] at %s: %s",
                exc.kind, exc.state or "input", exc,
            )
            return jsonify(GENERIC_ERROR), 500
        except json.JSONDecodeError as exc:
            logger.error("Provisioning failed [input]: invalid JSON body: %s", exc)
            return jsonify(GENERIC_ERROR), 500
        except Exception:
            logger.exception("Provisioning failed [unexpected]")
            return jsonify(GENERIC_ERROR), 500

        logger.info("Provisioning audit: %s", json.dumps(result.to_audit_dict()))
        return jsonify({"url": result.document.url}), 200

    return app


def _configure_logging() -> Settings:
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    return settings


_app: Optional[Flask] = None


def get_app() -> Flask:
    """WSGI application, built from the environment on first use."""
    global _app
    if _app is None:
        _app = create_app(_configure_logging())
    return _app


def __getattr__(name):
    # ``api:app`` for Waitress / Gunicorn resolves here
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
