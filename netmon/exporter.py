"""CSV/JSON 내보내기.

버퍼 스냅샷을 문자열로 직렬화할 뿐 모니터 상태는 건드리지 않는다.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import json

from netmon.models import Packet, SecurityAlert


PACKET_HEADERS = ["ID", "Timestamp", "Source IP", "Destination IP", "Protocol", "Port", "Size (bytes)", "Flags"]
ALERT_HEADERS = ["ID", "Timestamp", "Type", "Severity", "Source IP", "Description", "Packet Count"]

CONTENT_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
}


class ExportError(Exception):
    """내보내기 직렬화 실패"""


def iso_timestamp(value: datetime) -> str:
    """2024-01-01T12:00:00.000Z 형식 (UTC, 밀리초)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def packets_to_csv(packets: Sequence[Packet]) -> str:
    rows: List[str] = [",".join(PACKET_HEADERS)]
    try:
        for packet in packets:
            rows.append(",".join([
                str(packet.id),
                iso_timestamp(packet.timestamp),
                packet.source_ip,
                packet.destination_ip,
                packet.protocol,
                str(packet.port),
                str(packet.size),
                "|".join(packet.flags or []),
            ]))
    except (AttributeError, TypeError, ValueError) as e:
        raise ExportError(f"패킷 CSV 변환 실패: {e}") from e
    return "\n".join(rows)


def alerts_to_csv(alerts: Sequence[SecurityAlert]) -> str:
    rows: List[str] = [",".join(ALERT_HEADERS)]
    try:
        for alert in alerts:
            rows.append(",".join([
                str(alert.id),
                iso_timestamp(alert.timestamp),
                alert.type,
                alert.severity,
                alert.source_ip,
                f'"{alert.description}"',  # 설명에 쉼표가 들어갈 수 있음
                str(alert.packet_count) if alert.packet_count is not None else "",
            ]))
    except (AttributeError, TypeError, ValueError) as e:
        raise ExportError(f"경고 CSV 변환 실패: {e}") from e
    return "\n".join(rows)


def _to_json(key: str, total_key: str, items: Sequence, now: Optional[datetime]) -> str:
    try:
        entries = []
        for item in items:
            entry = item.model_dump(mode="json", by_alias=True)
            entry["timestamp"] = iso_timestamp(item.timestamp)
            entries.append(entry)
        payload = {
            "exportDate": iso_timestamp(now or datetime.now(timezone.utc)),
            total_key: len(entries),
            key: entries,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)
    except (AttributeError, TypeError, ValueError) as e:
        raise ExportError(f"JSON 변환 실패: {e}") from e


def packets_to_json(packets: Sequence[Packet], now: Optional[datetime] = None) -> str:
    return _to_json("packets", "totalPackets", packets, now)


def alerts_to_json(alerts: Sequence[SecurityAlert], now: Optional[datetime] = None) -> str:
    return _to_json("alerts", "totalAlerts", alerts, now)


def generate_filename(prefix: str, extension: str, now: Optional[datetime] = None) -> str:
    """packets_2024-01-01T12-00-00.csv 형식"""
    stamp = iso_timestamp(now or datetime.now(timezone.utc))
    # 밀리초와 'Z' 제거 후 ':' '.' → '-'
    stamp = stamp[:-5].replace(":", "-").replace(".", "-")
    return f"{prefix}_{stamp}.{extension}"
