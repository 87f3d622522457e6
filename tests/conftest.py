"""Shared fixtures: a sample report and in-memory Sheets / Drive fakes."""

import itertools
from datetime import datetime, timezone

import pytest

from albion_sheets.errors import RemoteServiceError
from albion_sheets.models import Document, Permission

AUTOMATION_EMAIL = "robot@albion-stats.iam.gserviceaccount.com"

STAT_LABELS = {
    "killFame": "Kill Fame",
    "deathFame": "Death Fame",
    "fameKd": "Fame K/D",
    "kills": "Kills",
    "deaths": "Deaths",
    "rawKd": "Raw K/D",
}


def _stat_row(i):
    return {
        "killFame": 1_000_000 * i,
        "deathFame": 250_000 * i,
        "fameKd": "4.0",
        "kills": 10 * i,
        "deaths": 3 * i,
        "rawKd": 3.3,
    }


def make_report_body(aggregate=3, members=5, solo=2, email="user@example.com"):
    body = {
        "avg": {
            "title": "Guild Averages",
            "fieldLabels": {"type": "Category", **STAT_LABELS, "killShots": "Kill Shots"},
            "rows": [
                {"type": f"Category {i}", **_stat_row(i), "killShots": i}
                for i in range(1, aggregate + 1)
            ],
        },
        "members": {
            "title": "Members",
            "fieldLabels": {"member": "Member", **STAT_LABELS, "killShots": "Kill Shots"},
            "rows": [
                {"member": f"Player{i}", **_stat_row(i), "killShots": i * 2}
                for i in range(1, members + 1)
            ],
        },
        "solo": {
            "title": "Solo Kills",
            "fieldLabels": {"member": "Member", **STAT_LABELS},
            "rows": [{"member": f"Solo{i}", **_stat_row(i)} for i in range(1, solo + 1)],
        },
    }
    if email is not None:
        body["email"] = email
    return body


class FakeDrive:
    """Permission store shared by the two fake services."""

    def __init__(self):
        self.permissions: dict[str, list[Permission]] = {}
        self._ids = itertools.count(1)

    def next_id(self, prefix):
        return f"{prefix}{next(self._ids)}"


class FakeSheets:
    def __init__(self, drive, fail_on=()):
        self.drive = drive
        self.fail_on = set(fail_on)
        self.calls = []

    def _maybe_fail(self, op):
        if op in self.fail_on:
            raise RemoteServiceError(f"{op} exploded", operation=op, status=503)

    def create(self, title):
        self.calls.append(("create", title))
        self._maybe_fail("create")
        doc_id = self.drive.next_id("sheet-")
        self.drive.permissions[doc_id] = [
            Permission(id=self.drive.next_id("perm-"), role="owner", email=AUTOMATION_EMAIL)
        ]
        return Document(id=doc_id, url=f"https://docs.google.com/spreadsheets/d/{doc_id}", title=title)

    def write_range(self, spreadsheet_id, range_ref, values):
        self.calls.append(("write_range", range_ref, values))
        self._maybe_fail("write_range")

    def batch_format(self, spreadsheet_id, requests):
        self.calls.append(("batch_format", requests))
        self._maybe_fail("batch_format")


class FakeAccess:
    """Mimics Drive: transferring ownership downgrades the old owner to writer."""

    def __init__(self, drive, fail_on=()):
        self.drive = drive
        self.fail_on = set(fail_on)
        self.calls = []

    def grant_owner(self, file_id, email):
        self.calls.append(("grant_owner", file_id, email))
        if "grant_owner" in self.fail_on:
            raise RemoteServiceError("grant failed", operation="permissions.create", status=403)
        perms = self.drive.permissions[file_id]
        perms[:] = [
            Permission(p.id, "writer", p.email) if p.role == "owner" else p for p in perms
        ]
        new = Permission(id=self.drive.next_id("perm-"), role="owner", email=email)
        perms.append(new)
        return new.id

    def list_permissions(self, file_id):
        self.calls.append(("list_permissions", file_id))
        return list(self.drive.permissions[file_id])

    def delete_permission(self, file_id, permission_id):
        self.calls.append(("delete_permission", file_id, permission_id))
        perms = self.drive.permissions[file_id]
        perms[:] = [p for p in perms if p.id != permission_id]


@pytest.fixture
def report_body():
    return make_report_body()


@pytest.fixture
def drive():
    return FakeDrive()


@pytest.fixture
def fake_sheets(drive):
    return FakeSheets(drive)


@pytest.fixture
def fake_access(drive):
    return FakeAccess(drive)


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 3, 9, 12, 30, tzinfo=timezone.utc)
    return lambda: moment
