"""
AppSchmiede Kernel — Button Action Interpreter

Maps a button's `action` and its well-known prop keys to an ActionEffect.
Pure: the preview (or any other host) performs the effect.
"""

from __future__ import annotations

import logging
from typing import Any

from engine.kernel.components import DEFAULT_SUPPORT_TARGET
from engine.kernel.types import ActionEffect

logger = logging.getLogger(__name__)

ACTION_PARAM_KEYS = ("target", "targetPage", "url", "phoneNumber", "emailAddress", "supportTarget")

DEMO_MESSAGES = {
    "login": "🔐 Login-Demo: Hier würdest du deinen eigenen Login-Flow integrieren.",
    "register": "📝 Registrierung-Demo: Binde hier deinen echten Registrierungsprozess ein.",
    "reset-password": "🔑 Passwort-zurücksetzen-Demo: Leite hier auf deine echte Reset-Logik weiter.",
    "logout": "🚪 Logout-Aktion: Hier könntest du deinen Auth-Flow einbinden.",
}

IGNORE = ActionEffect(kind="ignore")


def action_params(props: dict[str, Any]) -> dict[str, str]:
    """The string-valued action parameters of a button's props."""
    return {k: props[k] for k in ACTION_PARAM_KEYS if isinstance(props.get(k), str) and props[k]}


def interpret_action(action: str | None, params: dict[str, Any] | None = None) -> ActionEffect:
    """
    Resolve what pressing a button does.

    Target precedence is target, then targetPage, then url. Missing targets
    make navigation actions inert; unknown actions are logged and ignored.
    """
    if not action:
        return IGNORE
    params = params or {}
    target = params.get("target") or params.get("targetPage") or params.get("url")

    if action in ("navigate", "url"):
        return ActionEffect("open", action, href=target) if target else ActionEffect("ignore", action)
    if action in DEMO_MESSAGES:
        return ActionEffect("alert", action, message=DEMO_MESSAGES[action])
    if action == "chat":
        return ActionEffect("open", action, href=f"sms:{target}") if target else ActionEffect("ignore", action)
    if action == "call":
        number = target or params.get("phoneNumber")
        return ActionEffect("open", action, href=f"tel:{number}") if number else ActionEffect("ignore", action)
    if action == "email":
        address = target or params.get("emailAddress")
        return ActionEffect("open", action, href=f"mailto:{address}") if address else ActionEffect("ignore", action)
    if action == "upload-photo":
        return ActionEffect("file-picker", action)
    if action == "record-audio":
        return ActionEffect("record-audio", action)
    if action == "toggle-theme":
        return ActionEffect("toggle-theme", action)
    if action == "support-ticket":
        return ActionEffect("open", action, href=f"mailto:{params.get('supportTarget') or DEFAULT_SUPPORT_TARGET}")

    logger.info("Unknown action triggered: %s", action)
    return ActionEffect("ignore", action)
