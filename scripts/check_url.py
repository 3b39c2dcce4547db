"""Check that the Zomato partner login page is reachable from this host."""

from __future__ import annotations

import argparse
import asyncio
import socket
import sys
from urllib.parse import urlparse

import aiohttp

from utils.settings_store import get_settings

PROBE_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_PATH = "/login"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Probe the partner portal login URL before running the OTP flow."
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Base URL (default: zomato_partners_url setting / ZOMATO_PARTNERS_URL).",
    )
    parser.add_argument("--path", default=DEFAULT_PATH, help="Path to request.")
    parser.add_argument("--timeout", type=float, default=10.0, help="Timeout in seconds.")
    return parser


async def probe(url: str, timeout_secs: float = 10.0) -> tuple[int, dict[str, str]]:
    """GET *url* and return (status, headers)."""
    timeout = aiohttp.ClientTimeout(total=timeout_secs)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(
            url, headers={"User-Agent": PROBE_USER_AGENT}, allow_redirects=False
        ) as resp:
            return resp.status, dict(resp.headers)


def diagnose(exc: BaseException, hostname: str) -> list[str]:
    """Return human-readable hints for a failed probe."""
    if isinstance(exc, asyncio.TimeoutError):
        return ["Connection Timeout!", "The server is not responding."]
    if isinstance(exc, aiohttp.ClientConnectorError) and isinstance(
        exc.os_error, socket.gaierror
    ):
        return [
            "DNS Resolution Failed!",
            f'The domain "{hostname}" cannot be resolved.',
            "Possible solutions:",
            "1. Check your internet connection",
            "2. Verify the domain is correct",
            "3. Try using a VPN if the domain is region-restricted",
            "4. Check if you need to set ZOMATO_PARTNERS_URL environment variable",
        ]
    return [f"Connection Error: {type(exc).__name__}: {exc}"]


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    base_url = (args.url or get_settings().get("zomato_partners_url")).rstrip("/")
    target = f"{base_url}{args.path}"
    print(f"Testing URL: {target}")
    print("---")

    try:
        status, headers = asyncio.run(probe(target, args.timeout))
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        hostname = urlparse(target).hostname or base_url
        for line in diagnose(exc, hostname):
            print(line, file=sys.stderr)
        return 1

    print(f"Status Code: {status}")
    print(f"Headers: {headers}")
    print("URL is accessible!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
