from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from enum import Enum


class Protocol(str, Enum):
    TCP = "TCP"
    UDP = "UDP"
    ICMP = "ICMP"
    HTTP = "HTTP"
    HTTPS = "HTTPS"
    DNS = "DNS"


class AlertType(str, Enum):
    DOS_ATTACK = "DOS_ATTACK"
    PORT_SCAN = "PORT_SCAN"
    UNUSUAL_TRAFFIC = "UNUSUAL_TRAFFIC"
    SUSPICIOUS_PROTOCOL = "SUSPICIOUS_PROTOCOL"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class CamelModel(BaseModel):
    """JSON 필드는 camelCase (프론트엔드 호환)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class Packet(CamelModel):
    """시뮬레이션된 개별 패킷"""
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: datetime
    source_ip: str
    destination_ip: str
    protocol: Protocol
    port: int
    size: int
    flags: Optional[List[str]] = None


class SecurityAlert(CamelModel):
    """시뮬레이션된 보안 경고"""
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: datetime
    type: AlertType
    severity: Severity
    source_ip: str
    description: str
    packet_count: Optional[int] = None


class ProtocolStats(CamelModel):
    """프로토콜 분포 통계"""
    protocol: str
    count: int
    percentage: float
    color: str


class TrafficSample(CamelModel):
    """1초 단위 트래픽 샘플"""
    timestamp: str
    packets_per_second: int
    bytes_per_second: int
    tcp_count: int = 0
    udp_count: int = 0
    icmp_count: int = 0
    http_count: int = 0


class MonitorSnapshot(CamelModel):
    """대시보드 전체 상태"""
    is_monitoring: bool
    total_packets: int
    total_alerts: int
    protocol_count: int
    protocol_stats: List[ProtocolStats]
    traffic_data: List[TrafficSample]
    packets: List[Packet]
    alerts: List[SecurityAlert]
