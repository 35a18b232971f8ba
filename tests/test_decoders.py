"""Test lock artifact decoders and dialect detection."""

import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from lockguard.decoders import (
    NpmLockDecoder,
    PnpmLockDecoder,
    YarnLockDecoder,
    decode_lock_file,
    decode_lock_text,
    detect_dialect,
    sniff_dialect,
)
from lockguard.decoders.base import is_valid_name, split_descriptor
from lockguard.decoders.npm import split_install_path
from lockguard.decoders.pnpm import parse_entry_key
from lockguard.decoders.yarn import parse_header, parse_version_line
from lockguard.models import LockDialect, LockEntry


PNPM_V6 = """lockfileVersion: '6.0'

dependencies:
  left-pad:
    specifier: ^1.3.0
    version: 1.3.0

packages:

  /left-pad@1.3.0:
    resolution: {integrity: sha512-x}
    dev: false

  /@babel/core@7.22.0(supports-color@8.1.1):
    resolution: {integrity: sha512-y}
    dependencies:
      debug: 4.3.4(supports-color@8.1.1)
"""

PNPM_V9 = """lockfileVersion: '9.0'

importers:

  .:
    dependencies:
      '@babel/core':
        specifier: ^7.22.0
        version: 7.22.0

packages:

  '@babel/core@7.22.0':
    resolution: {integrity: sha512-y}

  lodash@4.17.21:
    resolution: {integrity: sha512-z}

snapshots:

  '@babel/core@7.22.0':
    dependencies:
      lodash: 4.17.21

  debug@4.3.4(supports-color@8.1.1):
    dependencies:
      ms: 2.1.2
"""

PNPM_V5 = """lockfileVersion: 5.4

packages:

  /left-pad/1.3.0:
    resolution: {integrity: sha512-x}

  /@types/node/18.0.0:
    dev: true

  /react-dom/17.0.2_react@17.0.2:
    dev: false
"""

YARN_CLASSIC = """# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.
# yarn lockfile v1


"@babel/code-frame@^7.0.0", "@babel/code-frame@^7.22.5":
  version "7.22.5"
  resolved "https://registry.yarnpkg.com/@babel/code-frame/-/code-frame-7.22.5.tgz"
  dependencies:
    "@babel/highlight" "^7.22.5"

lodash@^4.17.20, lodash@^4.17.21:
  version "4.17.21"
  resolved "https://registry.yarnpkg.com/lodash/-/lodash-4.17.21.tgz"
"""

YARN_BERRY = """# This file is generated by running "yarn install" inside your project.

__metadata:
  version: 6
  cacheKey: 8

"lodash@npm:^4.17.21":
  version: 4.17.21
  resolution: "lodash@npm:4.17.21"

"my-app@workspace:.":
  version: 0.0.0-use.local
  resolution: "my-app@workspace:."
"""


class TestDescriptorHelpers:
    """Test the shared name@version helpers."""

    def test_split_unscoped(self):
        assert split_descriptor("left-pad@1.3.0") == ("left-pad", "1.3.0")

    def test_split_scoped_keeps_scope(self):
        assert split_descriptor("@babel/core@^7.0.0") == ("@babel/core", "^7.0.0")

    def test_split_without_version(self):
        assert split_descriptor("left-pad") is None
        assert split_descriptor("@babel/core") is None
        assert split_descriptor("@scope") is None

    def test_valid_names(self):
        assert is_valid_name("lodash")
        assert is_valid_name("@types/node")
        assert not is_valid_name("@types")
        assert not is_valid_name("a/b")
        assert not is_valid_name("")


class TestPnpmLockDecoder:
    """Test the indented block dialect."""

    def test_v6_entries(self):
        """Test peer suffixes are stripped and scoped names stay whole."""
        packages = PnpmLockDecoder().decode(PNPM_V6)
        assert packages == {
            "left-pad": LockEntry(version="1.3.0"),
            "@babel/core": LockEntry(version="7.22.0"),
        }

    def test_v9_quoted_keys_and_snapshots(self):
        """Test quoted keys and names that only appear under snapshots."""
        packages = PnpmLockDecoder().decode(PNPM_V9)
        assert packages["@babel/core"].version == "7.22.0"
        assert packages["lodash"].version == "4.17.21"
        assert packages["debug"].version == "4.3.4"
        # importer entries and nested dependency maps are not packages
        assert "ms" not in packages
        assert "." not in packages

    def test_v5_legacy_keys(self):
        packages = PnpmLockDecoder().decode(PNPM_V5)
        assert packages["left-pad"].version == "1.3.0"
        assert packages["@types/node"].version == "18.0.0"
        assert packages["react-dom"].version == "17.0.2"

    def test_chains_are_empty(self):
        packages = PnpmLockDecoder().decode(PNPM_V9)
        assert all(entry.chain == () for entry in packages.values())

    def test_duplicate_names_keep_first(self):
        content = "packages:\n  /left-pad@1.3.0:\n    dev: false\n  /left-pad@1.2.0:\n    dev: false\n"
        packages = PnpmLockDecoder().decode(content)
        assert packages == {"left-pad": LockEntry(version="1.3.0")}

    def test_empty_and_unrecognised_content(self):
        decoder = PnpmLockDecoder()
        assert decoder.decode("") == {}
        assert decoder.decode("lockfileVersion: '6.0'\nsettings:\n  autoInstallPeers: true\n") == {}

    def test_malformed_entries_are_skipped(self):
        content = "packages:\n  not-a-descriptor:\n    dev: false\n  lodash@4.17.21:\n    dev: false\n"
        assert PnpmLockDecoder().decode(content) == {"lodash": LockEntry(version="4.17.21")}

    def test_parse_entry_key(self):
        assert parse_entry_key("/@scope/pkg@1.0.0(react@18.2.0)") == ("@scope/pkg", "1.0.0")
        assert parse_entry_key("/@scope/pkg/1.0.0_react@18.2.0") == ("@scope/pkg", "1.0.0")
        assert parse_entry_key("lodash") is None


class TestNpmLockDecoder:
    """Test the nested tree dialect."""

    def test_install_paths_with_chains(self):
        """Test lockfileVersion 3 paths yield names and ancestor chains."""
        lock = {
            "name": "demo",
            "lockfileVersion": 3,
            "packages": {
                "": {"name": "demo", "dependencies": {"dep-a": "^1.0.0"}},
                "node_modules/dep-a": {"version": "1.2.0"},
                "node_modules/dep-a/node_modules/dep-b": {"version": "2.0.0"},
                "node_modules/@scope/pkg": {"version": "3.0.0"},
                "node_modules/@scope/pkg/node_modules/@other/inner": {"version": "0.1.0"},
            },
        }
        packages = NpmLockDecoder().decode(json.dumps(lock))
        assert packages == {
            "dep-a": LockEntry(version="1.2.0"),
            "dep-b": LockEntry(version="2.0.0", chain=("dep-a",)),
            "@scope/pkg": LockEntry(version="3.0.0"),
            "@other/inner": LockEntry(version="0.1.0", chain=("@scope/pkg",)),
        }

    def test_hoisted_copy_wins(self):
        """Test that the shallowest install of a duplicated name is kept."""
        lock = {
            "lockfileVersion": 2,
            "packages": {
                "node_modules/dep-a/node_modules/ms": {"version": "2.0.0"},
                "node_modules/dep-a": {"version": "1.0.0"},
                "node_modules/ms": {"version": "2.1.3"},
            },
        }
        packages = NpmLockDecoder().decode(json.dumps(lock))
        assert packages["ms"] == LockEntry(version="2.1.3")

    def test_workspace_paths(self):
        lock = {
            "lockfileVersion": 3,
            "packages": {
                "packages/app": {"version": "0.0.1"},
                "packages/app/node_modules/left-pad": {"version": "1.3.0"},
            },
        }
        packages = NpmLockDecoder().decode(json.dumps(lock))
        assert packages == {"left-pad": LockEntry(version="1.3.0")}

    def test_nested_v1_dependencies(self):
        """Test lockfileVersion 1 accumulates the chain while descending."""
        lock = {
            "lockfileVersion": 1,
            "dependencies": {
                "dep-a": {
                    "version": "1.2.0",
                    "dependencies": {
                        "dep-b": {
                            "version": "2.0.0",
                            "dependencies": {"dep-c": {"version": "3.0.0"}},
                        }
                    },
                },
                "ms": {"version": "2.1.3"},
            },
        }
        packages = NpmLockDecoder().decode(json.dumps(lock))
        assert packages["dep-a"] == LockEntry(version="1.2.0")
        assert packages["ms"] == LockEntry(version="2.1.3")
        assert packages["dep-b"] == LockEntry(version="2.0.0", chain=("dep-a",))
        assert packages["dep-c"] == LockEntry(version="3.0.0", chain=("dep-a", "dep-b"))

    def test_missing_version(self):
        lock = {"lockfileVersion": 3, "packages": {"node_modules/linked": {"link": True}}}
        assert NpmLockDecoder().decode(json.dumps(lock))["linked"].version == "unknown"

    def test_malformed_documents(self):
        decoder = NpmLockDecoder()
        assert decoder.decode("") == {}
        assert decoder.decode("{not json") == {}
        assert decoder.decode("[1, 2, 3]") == {}
        assert decoder.decode('{"lockfileVersion": 3}') == {}

    def test_split_install_path(self):
        assert split_install_path("node_modules/a/node_modules/@s/b") == ["a", "@s/b"]
        assert split_install_path("node_modules/@s") is None
        assert split_install_path("packages/app") is None


class TestYarnLockDecoder:
    """Test the flat block dialect."""

    def test_classic_aliases_share_version(self):
        packages = YarnLockDecoder().decode(YARN_CLASSIC)
        assert packages == {
            "@babel/code-frame": LockEntry(version="7.22.5"),
            "lodash": LockEntry(version="4.17.21"),
        }

    def test_berry_format(self):
        """Test yarn 2+ descriptors, metadata block and workspace entries."""
        packages = YarnLockDecoder().decode(YARN_BERRY)
        assert packages == {"lodash": LockEntry(version="4.17.21")}

    def test_header_continued_on_next_line(self):
        content = 'foo@^1.0.0,\nfoo-alias@npm:foo@^1.1.0:\n  version "1.1.0"\n'
        packages = YarnLockDecoder().decode(content)
        assert packages["foo"].version == "1.1.0"
        assert packages["foo-alias"].version == "1.1.0"

    def test_nested_version_lines_are_ignored(self):
        content = 'foo@^1.0.0:\n  dependencies:\n    version "9.9.9"\n  version "1.0.0"\n'
        assert YarnLockDecoder().decode(content) == {"foo": LockEntry(version="1.0.0")}

    def test_entry_without_version(self):
        content = 'foo@^1.0.0:\n  resolved "https://example.invalid/foo.tgz"\n\nbar@^2.0.0:\n  version "2.0.0"\n'
        assert YarnLockDecoder().decode(content) == {"bar": LockEntry(version="2.0.0")}

    def test_empty_content(self):
        assert YarnLockDecoder().decode("") == {}
        assert YarnLockDecoder().decode("# yarn lockfile v1\n") == {}

    def test_parse_helpers(self):
        assert parse_header('"@a/b@^1", "@a/b@^1.1", c@2:') == ["@a/b", "c"]
        assert parse_version_line('version "1.0.0"') == "1.0.0"
        assert parse_version_line("version: 1.0.0") == "1.0.0"
        assert parse_version_line("versions 1") is None


class TestDialectDetection:
    """Test decoder selection by file name and content."""

    def test_detect_by_file_name(self):
        assert detect_dialect("a/pnpm-lock.yaml", "") is LockDialect.PNPM
        assert detect_dialect("package-lock.json", "") is LockDialect.NPM
        assert detect_dialect("npm-shrinkwrap.json", "") is LockDialect.NPM
        assert detect_dialect("/tmp/yarn.lock", "") is LockDialect.YARN

    def test_sniff_content(self):
        assert sniff_dialect('{"lockfileVersion": 3, "packages": {}}') is LockDialect.NPM
        assert sniff_dialect(YARN_CLASSIC) is LockDialect.YARN
        assert sniff_dialect(YARN_BERRY) is LockDialect.YARN
        assert sniff_dialect(PNPM_V9) is LockDialect.PNPM
        assert sniff_dialect('foo@^1.0.0:\n  version "1.0.0"\n') is LockDialect.YARN

    def test_sniff_rejects_non_lock_content(self):
        assert sniff_dialect("") is None
        assert sniff_dialect('{"name": "demo", "dependencies": {}}') is None
        assert sniff_dialect("just some text\n") is None

    def test_decode_lock_text_sniffs_unknown_names(self):
        dialect, packages = decode_lock_text(PNPM_V6, "deps.lock")
        assert dialect is LockDialect.PNPM
        assert set(packages) == {"left-pad", "@babel/core"}

    def test_decode_lock_text_unknown_format(self):
        assert decode_lock_text("hello\n", "notes.txt") == (None, {})

    def test_decode_lock_file(self, tmp_path):
        lock_path = tmp_path / "yarn.lock"
        lock_path.write_text(YARN_CLASSIC, encoding="utf-8")
        dialect, packages = decode_lock_file(lock_path)
        assert dialect is LockDialect.YARN
        assert packages["lodash"].version == "4.17.21"

    def test_decode_missing_file(self, tmp_path):
        assert decode_lock_file(tmp_path / "package-lock.json") == (None, {})
