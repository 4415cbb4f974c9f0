"""
Mock LLM for deterministic testing and UX timing simulation.

Answers page-generation requests with golden JSON files after a
configurable think delay. Used in tests (instant profile) and in local
development when no OpenAI key is configured.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

GOLDEN_DIR = Path(__file__).parent / "tests" / "fixtures" / "golden"

DEFAULT_SCENARIO = "chat_page"

DELAY_PROFILES: dict[str, dict[str, int]] = {
    "instant": {"think_ms": 0},
    "realistic": {"think_ms": 1200},
    "slow": {"think_ms": 4000},
}


class MockLLM:
    """Returns a golden page document in place of a chat completion."""

    def __init__(
        self,
        golden_dir: Path = GOLDEN_DIR,
        scenario: str = DEFAULT_SCENARIO,
        profile: str = "instant",
    ):
        if profile not in DELAY_PROFILES:
            raise ValueError(f"Unknown delay profile: {profile!r}. Valid profiles: {list(DELAY_PROFILES)}")
        self.golden_dir = golden_dir
        self.scenario = scenario
        self.profile = profile
        self.calls: list[dict[str, str | None]] = []

    async def generate_page(self, prompt: str, page_name: str | None = None) -> str:
        """
        Return the raw content of the scenario's golden file.

        Args:
            prompt: The user's prompt (recorded, not interpreted)
            page_name: Optional page title (recorded, not interpreted)

        Returns:
            The golden file text, exactly as an LLM would answer

        Raises:
            FileNotFoundError: If the golden file does not exist
        """
        path = self.golden_dir / f"{self.scenario}.json"
        if not path.exists():
            raise FileNotFoundError(f"Golden file not found: {path}")

        self.calls.append({"prompt": prompt, "page_name": page_name})

        think_ms = DELAY_PROFILES[self.profile]["think_ms"]
        if think_ms > 0:
            await asyncio.sleep(think_ms / 1000)

        return path.read_text(encoding="utf-8")

    def list_scenarios(self) -> list[str]:
        """Return names of all available golden file scenarios."""
        return sorted(p.stem for p in self.golden_dir.glob("*.json"))
