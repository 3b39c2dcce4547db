"""Tests for the Zomato partner OTP-request procedure with mocked Playwright."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from otp_controller.errors import (
    ACCESS_DENIED,
    ELEMENT_NOT_CLICKABLE,
    IFRAME_MISSING,
    LOGIN_BUTTON_MISSING,
    OTPAutomationError,
)
from otp_controller.web_adapters import zomato
from otp_controller.web_adapters.zomato import SELECTORS


def _element():
    el = MagicMock()
    el.click = AsyncMock()
    el.type = AsyncMock()
    el.bounding_box = AsyncMock(return_value=None)
    el.content_frame = AsyncMock(return_value=None)
    return el


class TestZomatoAdapter:
    """Test suite for the portal flow."""

    @pytest.fixture(autouse=True)
    def no_sleep(self):
        with patch("otp_controller.web_adapters.zomato.pause", new=AsyncMock()), patch(
            "otp_controller.timeouts.pause", new=AsyncMock()
        ):
            yield

    @pytest.fixture
    def portal(self):
        """Page and iframe mocks wired with every selector the flow uses."""
        frame = MagicMock()
        iframe = _element()
        iframe.content_frame = AsyncMock(return_value=frame)

        page_elements = {
            SELECTORS["login_button"]: _element(),
            SELECTORS["login_iframe"]: iframe,
        }
        frame_elements = {
            SELECTORS["iframe_heading"]: _element(),
            SELECTORS["continue_with_email"]: _element(),
            SELECTORS["email_input"]: _element(),
            SELECTORS["phone_input"]: _element(),
            SELECTORS["send_otp_button"]: _element(),
        }

        page = MagicMock()
        page.url = "https://partner.zomato.com/login"
        page.goto = AsyncMock()
        page.title = AsyncMock(return_value="Zomato for Business")
        page.mouse.click = AsyncMock()
        page.wait_for_selector = AsyncMock(
            side_effect=lambda selector, **kwargs: page_elements[selector]
        )
        frame.wait_for_selector = AsyncMock(
            side_effect=lambda selector, **kwargs: frame_elements[selector]
        )
        return {
            "page": page,
            "frame": frame,
            "iframe": iframe,
            "page_elements": page_elements,
            "frame_elements": frame_elements,
        }

    def test_open_login_page_navigates_and_reads_title(self, portal):
        page = portal["page"]
        url, title = asyncio.run(
            zomato.open_login_page(page, "https://partner.example.test/")
        )

        page.goto.assert_awaited_once_with(
            "https://partner.example.test/login", wait_until="networkidle", timeout=60000
        )
        assert url == "https://partner.zomato.com/login"
        assert title == "Zomato for Business"

    def test_title_failure_reads_as_unknown(self, portal):
        page = portal["page"]
        page.title = AsyncMock(side_effect=RuntimeError("navigated away"))

        _, title = asyncio.run(zomato.open_login_page(page, "https://partner.zomato.com"))

        assert title == "Unknown"

    @pytest.mark.parametrize("title", ["Access Denied", "403 - ACCESS DENIED page"])
    def test_block_page_detected(self, title):
        with pytest.raises(OTPAutomationError) as excinfo:
            zomato.ensure_not_blocked(title)
        assert excinfo.value.code == ACCESS_DENIED
        assert "detected automated browser" in str(excinfo.value)

    def test_normal_title_not_blocked(self):
        zomato.ensure_not_blocked("Zomato for Business")

    def test_missing_login_button(self, portal):
        page = portal["page"]
        page.wait_for_selector = AsyncMock(side_effect=TimeoutError("Timeout 60000ms exceeded"))

        with pytest.raises(OTPAutomationError) as excinfo:
            asyncio.run(zomato.click_login(page, page.url, "Zomato for Business"))

        assert excinfo.value.code == LOGIN_BUTTON_MISSING
        message = str(excinfo.value)
        assert "Page URL: https://partner.zomato.com/login" in message
        assert "Page Title: Zomato for Business" in message
        assert "Timeout 60000ms exceeded" in message
        # 1 attempt + 2 retries
        assert page.wait_for_selector.await_count == 3

    def test_missing_content_frame(self, portal):
        portal["iframe"].content_frame = AsyncMock(return_value=None)

        with pytest.raises(OTPAutomationError) as excinfo:
            asyncio.run(zomato.open_login_frame(portal["page"]))

        assert excinfo.value.code == IFRAME_MISSING

    def test_phone_flow(self, portal):
        page, frame = portal["page"], portal["frame"]

        result = asyncio.run(
            zomato.request_otp(
                page,
                partners_url="https://partner.zomato.com",
                identifier="9876543210",
                login_type="phone",
            )
        )

        assert result is frame
        portal["page_elements"][SELECTORS["login_button"]].click.assert_awaited_once()
        portal["frame_elements"][SELECTORS["phone_input"]].type.assert_awaited_once_with(
            "9876543210"
        )
        portal["frame_elements"][SELECTORS["send_otp_button"]].click.assert_awaited_once()
        portal["frame_elements"][SELECTORS["email_input"]].type.assert_not_awaited()
        page.mouse.click.assert_not_awaited()

    def test_email_flow_clicks_continue_with_email(self, portal):
        page = portal["page"]
        continue_button = portal["frame_elements"][SELECTORS["continue_with_email"]]
        continue_button.bounding_box = AsyncMock(
            return_value={"x": 100, "y": 200, "width": 50, "height": 20}
        )

        asyncio.run(
            zomato.request_otp(
                page,
                partners_url="https://partner.zomato.com",
                identifier="owner@example.com",
                login_type="email",
            )
        )

        page.mouse.click.assert_awaited_once_with(125.0, 210.0)
        portal["frame_elements"][SELECTORS["email_input"]].type.assert_awaited_once_with(
            "owner@example.com"
        )
        portal["frame_elements"][SELECTORS["send_otp_button"]].click.assert_awaited_once()
        portal["frame_elements"][SELECTORS["phone_input"]].type.assert_not_awaited()

    def test_email_flow_without_bounding_box(self, portal):
        with pytest.raises(OTPAutomationError) as excinfo:
            asyncio.run(
                zomato.request_otp(
                    portal["page"],
                    partners_url="https://partner.zomato.com",
                    identifier="owner@example.com",
                    login_type="email",
                )
            )

        assert excinfo.value.code == ELEMENT_NOT_CLICKABLE
        portal["frame_elements"][SELECTORS["send_otp_button"]].click.assert_not_awaited()

    def test_blocked_page_stops_before_login(self, portal):
        page = portal["page"]
        page.title = AsyncMock(return_value="Access Denied")

        with pytest.raises(OTPAutomationError) as excinfo:
            asyncio.run(
                zomato.request_otp(
                    page,
                    partners_url="https://partner.zomato.com",
                    identifier="9876543210",
                )
            )

        assert excinfo.value.code == ACCESS_DENIED
        page.wait_for_selector.assert_not_awaited()
