"""데모용 네트워크 트래픽 시뮬레이터.

실제 패킷 캡처 대신 일정 주기(기본 100ms)마다 임의의 패킷과
낮은 확률의 보안 경고를 생성해 구독자에게 전달한다.
"""
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import random
import threading

from netmon.events import ALERT, PACKET, SubscriptionRegistry
from netmon.models import AlertType, Packet, Protocol, SecurityAlert, Severity
from netmon.timer import PeriodicTimer

logger = logging.getLogger(__name__)

# 시뮬레이션용 IP 대역
IP_RANGES = [
    "192.168.1.",
    "10.0.0.",
    "172.16.0.",
    "203.0.113.",
    "198.51.100.",
    "8.8.8.",
    "1.1.1.",
]

# 프로토콜별 대표 포트 (ICMP는 포트가 없으므로 0)
COMMON_PORTS: Dict[Protocol, List[int]] = {
    Protocol.TCP: [80, 443, 22, 21, 25, 53, 110, 143, 993, 995],
    Protocol.UDP: [53, 67, 68, 123, 161, 162, 514, 1194],
    Protocol.HTTP: [80, 8080, 3000, 5000],
    Protocol.HTTPS: [443, 8443],
    Protocol.DNS: [53],
    Protocol.ICMP: [0],
}

PROTOCOLS = (
    Protocol.TCP,
    Protocol.UDP,
    Protocol.HTTP,
    Protocol.HTTPS,
    Protocol.DNS,
    Protocol.ICMP,
)

TCP_FLAGS = ["SYN", "ACK", "FIN", "RST", "PSH", "URG"]

MIN_PACKET_SIZE = 64
MAX_PACKET_SIZE = 1563

ALERT_TEMPLATES = [
    (AlertType.DOS_ATTACK, Severity.HIGH, "High volume of packets detected from single source"),
    (AlertType.PORT_SCAN, Severity.MEDIUM, "Sequential port scanning activity detected"),
    (AlertType.UNUSUAL_TRAFFIC, Severity.LOW, "Unusual traffic pattern on non-standard port"),
    (AlertType.SUSPICIOUS_PROTOCOL, Severity.MEDIUM, "Suspicious protocol usage detected"),
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NetworkSimulator:
    """임의의 패킷/경고 이벤트를 주기적으로 생성"""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        interval: float = 0.1,
        packets_per_tick: Tuple[int, int] = (1, 5),
        alert_probability: float = 0.02,
        protocols: Sequence[Protocol] = PROTOCOLS,
        registry: Optional[SubscriptionRegistry] = None,
    ):
        self.rng = rng or random.Random()
        self.clock = clock
        self.interval = interval
        self.packets_per_tick = packets_per_tick
        self.alert_probability = alert_probability
        self.protocols = list(protocols)
        self.registry = registry or SubscriptionRegistry()

        self._running = False
        self._timer: Optional[PeriodicTimer] = None
        # tick 실행과 stop()을 직렬화 (콜백 안에서 stop() 호출 허용)
        self._lock = threading.RLock()
        self._packet_counter = 0
        self._alert_counter = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def packet_counter(self) -> int:
        return self._packet_counter

    @property
    def alert_counter(self) -> int:
        return self._alert_counter

    def start(self):
        """시뮬레이션 시작"""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._timer = PeriodicTimer(self.interval, self.tick, name="network-simulator")
            self._timer.start()
        logger.info("📡 트래픽 시뮬레이션 시작 (주기: %.0fms)", self.interval * 1000)

    def stop(self):
        """시뮬레이션 중지 (카운터는 유지)"""
        with self._lock:
            if not self._running:
                return
            self._running = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()
        logger.info("🛑 트래픽 시뮬레이션 중지")

    def on_packet(self, callback: Callable[[Packet], None]) -> Callable[[], None]:
        return self.registry.subscribe(PACKET, callback)

    def on_alert(self, callback: Callable[[SecurityAlert], None]) -> Callable[[], None]:
        return self.registry.subscribe(ALERT, callback)

    def tick(self):
        """한 주기 실행: 패킷 1~5개 생성 후 경고 판정"""
        with self._lock:
            if not self._running:
                return
            low, high = self.packets_per_tick
            for _ in range(self.rng.randint(low, high)):
                # 콜백에서 stop()이 호출되면 남은 이벤트는 버림
                if not self._running:
                    return
                self.registry.publish(PACKET, self._create_packet())
            if self._running:
                self._check_for_suspicious_activity()

    def _create_packet(self) -> Packet:
        protocol = self.rng.choice(self.protocols)
        self._packet_counter += 1
        return Packet(
            id=self._packet_counter,
            timestamp=self.clock(),
            source_ip=self._random_ip(),
            destination_ip=self._random_ip(),
            protocol=protocol,
            port=self.rng.choice(COMMON_PORTS[protocol]),
            size=self.rng.randint(MIN_PACKET_SIZE, MAX_PACKET_SIZE),
            flags=self._tcp_flags() if protocol == Protocol.TCP else None,
        )

    def _random_ip(self) -> str:
        prefix = self.rng.choice(IP_RANGES)
        return f"{prefix}{self.rng.randint(1, 254)}"

    def _tcp_flags(self) -> List[str]:
        # 중복 추첨은 버리므로 뽑은 개수보다 적을 수 있음 (최소 1개)
        flags: List[str] = []
        for _ in range(self.rng.randint(1, 3)):
            flag = self.rng.choice(TCP_FLAGS)
            if flag not in flags:
                flags.append(flag)
        return flags

    def _check_for_suspicious_activity(self):
        # 실제 탐지가 아니라 2% 확률로 경고를 흉내냄
        if self.rng.random() >= self.alert_probability:
            return
        alert_type, severity, description = self.rng.choice(ALERT_TEMPLATES)
        self._alert_counter += 1
        alert = SecurityAlert(
            id=self._alert_counter,
            timestamp=self.clock(),
            type=alert_type,
            severity=severity,
            source_ip=self._random_ip(),
            description=description,
            packet_count=self.rng.randint(100, 1099),
        )
        logger.info("⚠️ 위협 탐지: %s - %s [%s]", alert.type, alert.source_ip, alert.severity)
        self.registry.publish(ALERT, alert)
