from collections import Counter, deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Iterable, List, Optional
import logging
import random
import threading

from netmon.config import Settings
from netmon.models import MonitorSnapshot, Packet, ProtocolStats, SecurityAlert, TrafficSample
from netmon.simulator import NetworkSimulator, utc_now
from netmon.timer import PeriodicTimer

logger = logging.getLogger(__name__)

# 시각화용 프로토콜 색상
PROTOCOL_COLORS = {
    "TCP": "#3b82f6",
    "UDP": "#10b981",
    "HTTP": "#f59e0b",
    "HTTPS": "#ef4444",
    "DNS": "#8b5cf6",
    "ICMP": "#06b6d4",
}
DEFAULT_COLOR = "#6b7280"

SAMPLE_WINDOW = timedelta(seconds=1)
RECENT_ALERT_WINDOW = timedelta(hours=24)


def compute_protocol_stats(packets: Iterable[Packet]) -> List[ProtocolStats]:
    """버퍼의 프로토콜 분포 (개수 내림차순)"""
    counts = Counter(packet.protocol for packet in packets)
    total = sum(counts.values())
    stats = [
        ProtocolStats(
            protocol=protocol,
            count=count,
            percentage=(count / total) * 100 if total > 0 else 0.0,
            color=PROTOCOL_COLORS.get(protocol, DEFAULT_COLOR),
        )
        for protocol, count in counts.items()
    ]
    # 동률은 처음 등장한 순서 유지 (안정 정렬)
    stats.sort(key=lambda s: s.count, reverse=True)
    return stats


def compute_traffic_sample(
    packets: Iterable[Packet],
    now: datetime,
    window: timedelta = SAMPLE_WINDOW,
) -> TrafficSample:
    """최근 1초 구간의 처리량 샘플"""
    # 버퍼 위치가 아니라 타임스탬프 기준으로 걸러야 함
    cutoff = now - window
    recent = [packet for packet in packets if packet.timestamp >= cutoff]
    counts = Counter(packet.protocol.lower() for packet in recent)
    return TrafficSample(
        timestamp=now.astimezone().strftime("%H:%M:%S"),
        packets_per_second=len(recent),
        bytes_per_second=sum(packet.size for packet in recent),
        tcp_count=counts["tcp"],
        udp_count=counts["udp"],
        icmp_count=counts["icmp"],
        http_count=counts["http"] + counts["https"],
    )


class TrafficSampler:
    """1초마다 트래픽 샘플을 계산해 시계열에 추가"""

    def __init__(
        self,
        source: Callable[[], List[Packet]],
        clock: Callable[[], datetime] = utc_now,
        interval: float = 1.0,
        max_samples: int = 60,
        lock=None,
    ):
        self.source = source
        self.clock = clock
        self.interval = interval
        self._series: Deque[TrafficSample] = deque(maxlen=max_samples)
        self._lock = lock or threading.RLock()
        self._running = False
        self._timer: Optional[PeriodicTimer] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        with self._lock:
            if self._running:
                return
            self._running = True
            self._timer = PeriodicTimer(self.interval, self._on_tick, name="traffic-sampler")
            self._timer.start()

    def stop(self):
        with self._lock:
            if not self._running:
                return
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()

    def sample(self) -> TrafficSample:
        """샘플 1개 계산 후 시계열에 추가 (최근 max_samples개 유지)"""
        with self._lock:
            point = compute_traffic_sample(self.source(), self.clock())
            self._series.append(point)
            return point

    def series(self) -> List[TrafficSample]:
        with self._lock:
            return list(self._series)

    def clear(self):
        with self._lock:
            self._series.clear()

    def _on_tick(self):
        with self._lock:
            if not self._running:
                return
            self.sample()


class NetworkMonitor:
    """시뮬레이터 + 롤링 버퍼 + 통계 집계"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        simulator: Optional[NetworkSimulator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or Settings()
        self.simulator = simulator or NetworkSimulator(
            rng=random.Random(self.settings.seed),
            clock=clock or utc_now,
            interval=self.settings.tick_interval,
            alert_probability=self.settings.alert_probability,
        )
        self.clock = clock or self.simulator.clock

        # 버퍼 변경과 스냅샷 읽기를 직렬화
        self._lock = threading.RLock()
        self._packets: Deque[Packet] = deque(maxlen=self.settings.max_packets)
        self._alerts: Deque[SecurityAlert] = deque(maxlen=self.settings.max_alerts)

        self.sampler = TrafficSampler(
            self.packets,
            clock=self.clock,
            interval=self.settings.sample_interval,
            max_samples=self.settings.max_samples,
            lock=self._lock,
        )

        self.simulator.on_packet(self._handle_packet)
        self.simulator.on_alert(self._handle_alert)

    def _handle_packet(self, packet: Packet):
        # 최신 항목이 앞, 오래된 항목은 maxlen 초과 시 뒤에서 제거
        with self._lock:
            self._packets.appendleft(packet)
        logger.debug("packet %s %s %s -> %s", packet.id, packet.protocol, packet.source_ip, packet.destination_ip)

    def _handle_alert(self, alert: SecurityAlert):
        with self._lock:
            self._alerts.appendleft(alert)

    @property
    def is_monitoring(self) -> bool:
        return self.simulator.running

    def start(self):
        """모니터링 시작"""
        if self.is_monitoring and self.sampler.running:
            return
        self.simulator.start()
        self.sampler.start()
        logger.info("🚀 모니터링 시작")

    def stop(self):
        """모니터링 중지 (버퍼는 유지)"""
        if not self.is_monitoring and not self.sampler.running:
            return
        self.simulator.stop()
        self.sampler.stop()
        logger.info("🛑 모니터링 중지")

    def clear(self):
        """버퍼와 통계 초기화 (시뮬레이터 상태는 그대로)"""
        with self._lock:
            self._packets.clear()
            self._alerts.clear()
            self.sampler.clear()
        logger.info("🔄 데이터 초기화")

    def packets(self, limit: Optional[int] = None) -> List[Packet]:
        with self._lock:
            items = list(self._packets)
        return items if limit is None else items[:limit]

    def alerts(self, limit: Optional[int] = None) -> List[SecurityAlert]:
        with self._lock:
            items = list(self._alerts)
        return items if limit is None else items[:limit]

    def recent_alerts(self, window: timedelta = RECENT_ALERT_WINDOW) -> List[SecurityAlert]:
        """최근 window(기본 24시간) 이내 경고"""
        cutoff = self.clock() - window
        return [alert for alert in self.alerts() if alert.timestamp >= cutoff]

    def protocol_stats(self) -> List[ProtocolStats]:
        return compute_protocol_stats(self.packets())

    def traffic_data(self) -> List[TrafficSample]:
        return self.sampler.series()

    @property
    def total_packets(self) -> int:
        with self._lock:
            return len(self._packets)

    @property
    def total_alerts(self) -> int:
        with self._lock:
            return len(self._alerts)

    def snapshot(self, limit: Optional[int] = 100) -> MonitorSnapshot:
        """대시보드용 현재 상태"""
        with self._lock:
            packets = list(self._packets)
            alerts = list(self._alerts)
            traffic = self.sampler.series()
        stats = compute_protocol_stats(packets)
        return MonitorSnapshot(
            is_monitoring=self.is_monitoring,
            total_packets=len(packets),
            total_alerts=len(alerts),
            protocol_count=len(stats),
            protocol_stats=stats,
            traffic_data=traffic,
            packets=packets if limit is None else packets[:limit],
            alerts=alerts if limit is None else alerts[:limit],
        )
