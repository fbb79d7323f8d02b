#!/usr/bin/env python3
# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later

"""Simple end-to-end test runner for the installed CLI, without pytest dependency."""

import subprocess
import sys
import tempfile
import traceback
from pathlib import Path

CLI = "log-highlight-html"


def run_test(test_func, test_name):
    """Run a single test function and report results."""
    print(f"\n{'='*60}")
    print(f"Running: {test_name}")
    print('='*60)

    try:
        test_func()
        print(f"✅ PASSED: {test_name}")
        return True
    except Exception as e:
        print(f"❌ FAILED: {test_name}")
        print(f"Error: {e}")
        print("Traceback:")
        traceback.print_exc()
        return False


def _run_cli(*args):
    cmd = [CLI, *args]
    print(f"Running command: {' '.join(cmd)}")
    return subprocess.run(cmd, capture_output=True, text=True)


def test_highlighted_log_e2e():
    """Test converting a log with word and line rules through the CLI."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        log = temp_path / "service.log"
        log.write_text(
            "2025-01-01 INFO started\n"
            "2025-01-01 ERROR <script>alert(1)</script>\n"
            "2025-01-01 WARN disk at 91%\n",
            encoding="utf-8",
        )

        result = _run_cli(
            "run", str(log),
            "-o", str(temp_path / "out"),
            "--settings", str(temp_path / "settings.json"),
            "--rule", "ERROR=#FF0000",
            "--rule", "WARN=#80FFA500:line",
        )

        assert result.returncode == 0, f"CLI failed with exit code {result.returncode}:\nstdout: {result.stdout}\nstderr: {result.stderr}"
        print("✓ CLI executed successfully")

        output = temp_path / "out" / "service.html"
        assert output.exists(), "No HTML file was created"
        content = output.read_text(encoding="utf-8-sig")

        assert content.startswith("<!DOCTYPE html>"), "Missing doctype"
        assert content.count('<div class="l"') == 3, "Expected one container per line"
        assert '<span style="color:#FF0000">ERROR</span>' in content, "Word rule not applied"
        assert '<div class="l" style="color:#FFA500">' in content, "Line rule not applied"
        assert "<script>" not in content, "Log markup leaked into the document"
        print("✓ Found expected highlighting")


def test_missing_input_e2e():
    """Test that a missing input exits non-zero without output."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)

        result = _run_cli(
            "run", str(temp_path / "missing.log"),
            "--settings", str(temp_path / "settings.json"),
        )

        assert result.returncode == 1, f"Unexpected exit code {result.returncode}"
        assert not (temp_path / "missing.html").exists(), "Output created for missing input"
        print("✓ Missing input rejected")


def test_history_e2e():
    """Test that conversions are listed in the history."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        settings = str(temp_path / "settings.json")
        log = temp_path / "a.log"
        log.write_text("ERROR\n", encoding="utf-8")

        assert _run_cli("run", str(log), "--settings", settings).returncode == 0
        result = _run_cli("history", "--settings", settings)

        assert result.returncode == 0, f"history failed: {result.stderr}"
        assert "1 record(s)" in result.stdout, "History entry missing"
        print("✓ History recorded")


def main():
    """Run all tests."""
    print("log-highlight-html E2E Test Suite")
    print("=================================")

    tests = [
        (test_highlighted_log_e2e, "Highlighted log E2E"),
        (test_missing_input_e2e, "Missing input E2E"),
        (test_history_e2e, "History E2E"),
    ]

    passed = 0
    failed = 0

    for test_func, test_name in tests:
        if run_test(test_func, test_name):
            passed += 1
        else:
            failed += 1

    print(f"\n{'='*60}")
    print(f"TEST SUMMARY: {passed} passed, {failed} failed")
    print('='*60)

    if failed > 0:
        sys.exit(1)
    else:
        print("All tests passed! ✅")


if __name__ == "__main__":
    main()
