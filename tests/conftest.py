from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from netmon.config import Settings
from netmon.models import Packet, Protocol
from netmon.monitor import NetworkMonitor
from netmon.simulator import NetworkSimulator

# 테스트 중 실제 타이머가 끼어들지 않도록 충분히 긴 주기
NEVER = 3600.0


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_packet(
    packet_id: int,
    timestamp: datetime,
    protocol: Protocol = Protocol.TCP,
    size: int = 100,
) -> Packet:
    return Packet(
        id=packet_id,
        timestamp=timestamp,
        source_ip="192.168.1.10",
        destination_ip="10.0.0.20",
        protocol=protocol,
        port=80,
        size=size,
        flags=["SYN"] if protocol == Protocol.TCP else None,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def simulator(clock: FakeClock) -> NetworkSimulator:
    return NetworkSimulator(rng=random.Random(1234), clock=clock, interval=NEVER)


@pytest.fixture
def settings() -> Settings:
    return Settings(tick_interval=NEVER, sample_interval=NEVER, broadcast_interval=0.05)


@pytest.fixture
def monitor(settings: Settings, simulator: NetworkSimulator, clock: FakeClock):
    monitor = NetworkMonitor(settings, simulator=simulator, clock=clock)
    yield monitor
    monitor.stop()
