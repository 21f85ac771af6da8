from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
import os

ENV_PREFIX = "NETMON_"

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",   # React 기본 포트
    "http://localhost:5173",   # Vite 개발 서버
    "http://localhost:5174",   # Vite 대체 포트
]


class Settings(BaseModel):
    """서버 및 시뮬레이터 설정"""
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = False
    log_level: str = "info"
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # 타이머 주기 (초)
    tick_interval: float = Field(default=0.1, gt=0)
    sample_interval: float = Field(default=1.0, gt=0)
    broadcast_interval: float = Field(default=1.0, gt=0)

    # 롤링 버퍼 크기
    max_packets: int = Field(default=1000, ge=1)
    max_alerts: int = Field(default=100, ge=1)
    max_samples: int = Field(default=60, ge=1)

    alert_probability: float = Field(default=0.02, ge=0, le=1)
    seed: Optional[int] = None
    autostart: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.lower()
        if level not in {"critical", "error", "warning", "info", "debug", "trace"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        """NETMON_* 환경 변수에서 설정 로드"""
        environ = os.environ if environ is None else environ
        values = {
            name[len(ENV_PREFIX):].lower(): raw
            for name, raw in environ.items()
            if name.startswith(ENV_PREFIX) and raw != ""
        }
        known = {key: raw for key, raw in values.items() if key in cls.model_fields}
        return cls(**known)
