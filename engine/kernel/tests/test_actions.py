"""Button action interpreter tests."""

from __future__ import annotations

import pytest

from engine.kernel.actions import DEMO_MESSAGES, action_params, interpret_action
from engine.kernel.components import DEFAULT_SUPPORT_TARGET
from engine.kernel.types import ActionEffect


class TestNavigation:
    def test_navigate_uses_target_first(self):
        effect = interpret_action("navigate", {"target": "/a", "targetPage": "/b", "url": "/c"})
        assert effect == ActionEffect("open", "navigate", href="/a")

    def test_target_page_before_url(self):
        effect = interpret_action("url", {"targetPage": "/b", "url": "https://example.org"})
        assert effect.href == "/b"

    def test_url_fallback(self):
        assert interpret_action("url", {"url": "https://example.org"}).href == "https://example.org"

    @pytest.mark.parametrize("action", ["navigate", "url", "chat"])
    def test_missing_target_is_inert(self, action):
        effect = interpret_action(action, {})
        assert effect.kind == "ignore"
        assert effect.href is None


class TestContactActions:
    def test_chat_opens_sms(self):
        assert interpret_action("chat", {"target": "+4912345"}).href == "sms:+4912345"

    def test_call_prefers_target_over_phone_number(self):
        assert interpret_action("call", {"target": "110", "phoneNumber": "112"}).href == "tel:110"
        assert interpret_action("call", {"phoneNumber": "112"}).href == "tel:112"

    def test_call_without_number(self):
        assert interpret_action("call").kind == "ignore"

    def test_email(self):
        assert interpret_action("email", {"emailAddress": "a@b.de"}).href == "mailto:a@b.de"
        assert interpret_action("email", {}).kind == "ignore"

    def test_support_ticket_default_target(self):
        effect = interpret_action("support-ticket")
        assert effect.href == f"mailto:{DEFAULT_SUPPORT_TARGET}"

    def test_support_ticket_custom_target(self):
        assert interpret_action("support-ticket", {"supportTarget": "hilfe@firma.de"}).href == "mailto:hilfe@firma.de"


class TestDemoAndDeviceActions:
    @pytest.mark.parametrize("action", sorted(DEMO_MESSAGES))
    def test_auth_demo_alerts(self, action):
        effect = interpret_action(action)
        assert effect.kind == "alert"
        assert effect.message == DEMO_MESSAGES[action]

    @pytest.mark.parametrize(
        "action,kind",
        [("upload-photo", "file-picker"), ("record-audio", "record-audio"), ("toggle-theme", "toggle-theme")],
    )
    def test_device_effects(self, action, kind):
        assert interpret_action(action).kind == kind


class TestUnknown:
    def test_no_action(self):
        assert interpret_action(None).kind == "ignore"
        assert interpret_action("").kind == "ignore"

    def test_unknown_action_is_logged_and_ignored(self, caplog):
        with caplog.at_level("INFO", logger="engine.kernel.actions"):
            effect = interpret_action("teleport")
        assert effect == ActionEffect("ignore", "teleport")
        assert "teleport" in caplog.text


class TestActionParams:
    def test_keeps_only_non_empty_strings(self):
        props = {"label": "Los", "target": "/x", "url": "", "phoneNumber": 123, "emailAddress": "a@b.de"}
        assert action_params(props) == {"target": "/x", "emailAddress": "a@b.de"}
