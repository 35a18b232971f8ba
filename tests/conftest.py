"""Shared fixtures for lockguard tests."""

import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest


@pytest.fixture
def database_data():
    """A small but complete threat database document."""
    return {
        "version": "2.1.0",
        "lastUpdated": "2025-09-16",
        "campaigns": {
            "shai-hulud": {
                "name": "Shai-Hulud",
                "date": "2025-09-15",
                "severity": "high",
                "description": "Self-propagating token stealer",
                "packages": ["@ctrl/tinycolor", "ngx-toastr"],
                "affectedVersions": {"@ctrl/tinycolor": ["4.1.1", "4.1.2"]},
            },
            "chalk-debug": {
                "name": "chalk/debug compromise",
                "date": "2025-09-08",
                "packages": ["debug", "@ctrl/tinycolor"],
            },
        },
        "knownMalicious": {
            "confirmed": ["dep-b", "@scope/anything", "flatmap-stream"],
            "typosquatting": ["crossenv"],
            "credentialTheft": ["discord.dll", "crossenv"],
            "cryptoMalware": ["klow"],
        },
        "protestware": {
            "high": {"packages": ["node-ipc"], "details": {"node-ipc": "Overwrites files"}},
            "medium": {"packages": ["colors"], "details": {}},
            "low": {"packages": ["peacenotwar"]},
        },
        "trustedPackages": {"packages": ["@scope/*", "typescript"]},
    }


@pytest.fixture
def write_project(tmp_path):
    """Create an npm project directory with a manifest, lock file and database."""

    def _write(dependencies=None, lock=None, lock_name="package-lock.json", database=None, manifest=None):
        if manifest is None:
            manifest = {"name": "demo", "version": "1.0.0", "dependencies": dependencies or {}}
        (tmp_path / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
        if lock is not None:
            content = lock if isinstance(lock, str) else json.dumps(lock)
            (tmp_path / lock_name).write_text(content, encoding="utf-8")
        if database is not None:
            (tmp_path / "security").mkdir(exist_ok=True)
            (tmp_path / "security" / "compromised-packages.json").write_text(
                json.dumps(database), encoding="utf-8"
            )
        return tmp_path

    return _write
