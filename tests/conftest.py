from __future__ import annotations

import asyncio
from typing import Any

import pytest

from servflow.config import EngineConfig, ServflowConfig, TwilioConfig
from servflow.contracts import Action, Automation
from servflow.execute import AutomationExecutor
from servflow.persistence import InMemoryAutomationRepository
from servflow.providers import InMemoryProvider, ProviderSet

FROM_NUMBER = "+15550001111"
ANNOUNCEMENT_URL = "https://example.com/announce.xml"


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records requested durations."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        # hand control back to the loop like a real sleep would
        await asyncio.sleep(0)


def _make_automation(*actions: dict[str, Any], **fields: Any) -> Automation:
    automation = Automation(name=fields.pop("name", "Test automation"), **fields)
    automation.actions = [
        Action(automation_id=automation.id, **values) for values in actions
    ]
    return automation


@pytest.fixture
def config() -> ServflowConfig:
    return ServflowConfig(
        providers="inmemory",
        twilio=TwilioConfig(from_number=FROM_NUMBER, announcement_url=ANNOUNCEMENT_URL),
        engine=EngineConfig(delay_unit_seconds=60),
    )


@pytest.fixture
def repository() -> InMemoryAutomationRepository:
    return InMemoryAutomationRepository()


@pytest.fixture
def provider() -> InMemoryProvider:
    return InMemoryProvider()


@pytest.fixture
def providers(provider: InMemoryProvider) -> ProviderSet:
    return ProviderSet(sms=provider, voice=provider, email=provider)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def executor(repository, providers, config, sleeper) -> AutomationExecutor:
    return AutomationExecutor(
        repository=repository, providers=providers, config=config, sleep=sleeper
    )


@pytest.fixture
def make_automation():
    """Build an automation whose actions are given as plain dicts."""
    return _make_automation
