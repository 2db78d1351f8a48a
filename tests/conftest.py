"""
Pytest configuration and fixtures for aiofaults tests
"""
import asyncio

import pytest

from aiofaults import (
    BaseExceptionStrategy,
    ContextSource,
    ExceptionCategory,
    ExceptionContext,
    UnifiedExceptionManager,
    global_bus,
)
from aiofaults.logging import disable_logging


class RecordingBus:
    """Async fault bus that keeps everything published to it"""

    def __init__(self, fail_with=None, delay=0.0):
        self.published = []
        self.fail_with = fail_with
        self.delay = delay

    async def publish(self, error, context):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((error, context))


class SyncRecordingBus:
    """Synchronous fault bus"""

    def __init__(self):
        self.published = []

    def publish(self, error, context):
        self.published.append((error, context))


class ScriptedStrategy(BaseExceptionStrategy):
    """Strategy whose outcome is fixed up front; records every call"""

    def __init__(self, name, priority, succeed=True, category=ExceptionCategory.APPLICATION, calls=None):
        super().__init__(name=name, category=category, priority=priority)
        self.succeed = succeed
        self.calls = calls if calls is not None else []

    def build_response(self, exception):
        self.calls.append(self.name)
        if not self.succeed:
            raise RuntimeError(f"{self.name} refused")
        return {"handled_by": self.name}


@pytest.fixture
def context():
    return ExceptionContext(
        tenant_id="tenant-1",
        user_id="user-1",
        organization_id="org-1",
        department_id="dept-1",
        request_id="req-1",
        source=ContextSource.WEB,
    )


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def manager(bus):
    return UnifiedExceptionManager(fault_bus=bus)


@pytest.fixture(autouse=True)
def reset_global_state():
    """Global bus and logging handler are process-wide; reset them around each test"""
    global_bus.clear()
    yield
    global_bus.clear()
    disable_logging()


@pytest.fixture
def scripted_strategy():
    """ScriptedStrategy class, for tests that build custom strategy sets"""
    return ScriptedStrategy


@pytest.fixture
def recording_bus():
    """RecordingBus class, for tests that need a failing or slow bus"""
    return RecordingBus


@pytest.fixture
def sync_bus():
    return SyncRecordingBus()
