"""Unit tests for utility functions (ngfullstack.utils).

Tests cover:
- run_command (success, failure, cwd, capture=False, missing executable)
- probe_version (clean output, missing executable, non-zero exit, stderr, garbage)
- slugify / pascal_case / camel_case / pluralize
- load_json
- format_duration
- PHASE_NAMES / PHASE_COLORS constants
- Rich output helpers
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from ngfullstack.utils import (
    PHASE_COLORS,
    PHASE_NAMES,
    CollaboratorProbeFailure,
    camel_case,
    format_duration,
    load_json,
    pascal_case,
    pluralize,
    print_error,
    print_phase_header,
    print_section,
    print_success,
    print_summary_table,
    print_warning,
    probe_version,
    run_command,
    slugify,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    async def test_successful_list_command(self):
        rc, out, err = await run_command([sys.executable, "-c", "print('hello')"])
        assert rc == 0
        assert out == "hello"
        assert err == ""

    @pytest.mark.unit
    async def test_failing_command(self):
        rc, _, _ = await run_command([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert rc == 3

    @pytest.mark.unit
    async def test_cwd(self, tmp_path: Path):
        rc, out, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert rc == 0
        assert Path(out).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    async def test_no_capture(self):
        rc, out, err = await run_command([sys.executable, "-c", "pass"], capture=False)
        assert rc == 0
        assert out == ""
        assert err == ""

    @pytest.mark.unit
    async def test_missing_executable_raises(self):
        with pytest.raises(OSError):
            await run_command(["definitely-not-a-real-binary-ngfs"])


# ---------------------------------------------------------------------------
# probe_version
# ---------------------------------------------------------------------------


class TestProbeVersion:
    @pytest.mark.unit
    async def test_returns_version(self):
        with patch("ngfullstack.utils.run_command", AsyncMock(return_value=(0, "10.8.2", ""))):
            assert await probe_version(["npm", "--version"]) == "10.8.2"

    @pytest.mark.unit
    async def test_accepts_v_prefix(self):
        with patch("ngfullstack.utils.run_command", AsyncMock(return_value=(0, "v20.11.0", ""))):
            assert await probe_version(["node", "--version"]) == "v20.11.0"

    @pytest.mark.unit
    async def test_missing_executable(self):
        with patch(
            "ngfullstack.utils.run_command",
            AsyncMock(side_effect=FileNotFoundError("npm not found")),
        ):
            with pytest.raises(CollaboratorProbeFailure) as exc_info:
                await probe_version(["npm", "--version"])
        assert exc_info.value.command == "npm --version"

    @pytest.mark.unit
    async def test_non_zero_exit(self):
        with patch("ngfullstack.utils.run_command", AsyncMock(return_value=(1, "", ""))):
            with pytest.raises(CollaboratorProbeFailure, match="exit code 1"):
                await probe_version(["npm", "--version"])

    @pytest.mark.unit
    async def test_stderr_output(self):
        with patch(
            "ngfullstack.utils.run_command",
            AsyncMock(return_value=(0, "10.8.2", "npm WARN config")),
        ):
            with pytest.raises(CollaboratorProbeFailure):
                await probe_version(["npm", "--version"])

    @pytest.mark.unit
    async def test_unparsable_output(self):
        with patch(
            "ngfullstack.utils.run_command",
            AsyncMock(return_value=(0, "command not recognised", "")),
        ):
            with pytest.raises(CollaboratorProbeFailure, match="unparsable"):
                await probe_version(["npm", "--version"])


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


class TestNameHelpers:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("My Cool App", "my-cool-app"),
            ("  2FA (TOTP)  ", "2fa-totp"),
            ("already-slugged", "already-slugged"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, raw: str, expected: str):
        assert slugify(raw) == expected

    @pytest.mark.unit
    def test_pascal_case(self):
        assert pascal_case("shop-front") == "ShopFront"
        assert pascal_case("order_item") == "OrderItem"

    @pytest.mark.unit
    def test_camel_case(self):
        assert camel_case("shop-front") == "shopFront"
        assert camel_case("") == ""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "word, plural",
        [("thing", "things"), ("category", "categories"), ("day", "days"), ("news", "news")],
    )
    def test_pluralize(self, word: str, plural: str):
        assert pluralize(word) == plural


# ---------------------------------------------------------------------------
# load_json
# ---------------------------------------------------------------------------


class TestLoadJson:
    @pytest.mark.unit
    def test_loads_object(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"a": 1}))
        assert load_json(path) == {"a": 1}

    @pytest.mark.unit
    def test_rejects_non_object(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="expected a JSON object"):
            load_json(path)

    @pytest.mark.unit
    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "data.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_json(path)

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


# ---------------------------------------------------------------------------
# Constants and Rich output
# ---------------------------------------------------------------------------


class TestPhaseConstants:
    @pytest.mark.unit
    def test_phase_names(self):
        assert PHASE_NAMES == {
            1: "INITIALIZE",
            2: "PROMPT",
            3: "CONFIGURE",
            4: "WRITE",
            5: "INSTALL",
        }

    @pytest.mark.unit
    def test_every_phase_has_a_color(self):
        assert set(PHASE_COLORS) == set(PHASE_NAMES)


class TestRichOutput:
    @pytest.mark.unit
    def test_helpers_do_not_raise(self, capsys):
        print_phase_header(1, "initialize")
        print_section("Client")
        print_summary_table({"Script extension": "js"}, title="Settings")
        print_success("done")
        print_error("failed")
        print_warning("careful")
        captured = capsys.readouterr()
        assert "Phase 1: INITIALIZE" in captured.out
        assert "# Client" in captured.out
