"""Tests for the partner portal reachability probe."""

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp

from scripts import check_url


class TestCheckURL:
    def test_reachable(self, capsys):
        with patch(
            "scripts.check_url.probe", new=AsyncMock(return_value=(200, {"Server": "nginx"}))
        ) as probe:
            code = check_url.main(["--url", "https://partner.example.test/"])

        assert code == 0
        probe.assert_awaited_once_with("https://partner.example.test/login", 10.0)
        out = capsys.readouterr().out
        assert "Status Code: 200" in out
        assert "URL is accessible!" in out

    def test_connection_error(self, capsys):
        with patch(
            "scripts.check_url.probe",
            new=AsyncMock(side_effect=aiohttp.ClientConnectionError("refused")),
        ):
            code = check_url.main(["--url", "https://partner.example.test"])

        assert code == 1
        assert "Connection Error" in capsys.readouterr().err

    def test_timeout_diagnosis(self):
        lines = check_url.diagnose(asyncio.TimeoutError(), "partner.example.test")
        assert lines[0] == "Connection Timeout!"

    def test_generic_diagnosis(self):
        lines = check_url.diagnose(aiohttp.ClientPayloadError("bad"), "partner.example.test")
        assert lines[0].startswith("Connection Error")
