"""NetGuard Traffic Monitor - 데모용 네트워크 트래픽 시뮬레이션 백엔드"""

__version__ = "1.0.0"
