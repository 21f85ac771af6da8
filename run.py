import uvicorn

from netmon.config import Settings

if __name__ == "__main__":
    settings = Settings.from_env()

    print("=" * 50)
    print("🔒 NetGuard Traffic Monitor - 데모용 트래픽 시뮬레이터")
    print("=" * 50)
    print("\nℹ️  실제 패킷 캡처가 아닌 시뮬레이션 데이터입니다 (관리자 권한 불필요)")
    print(f"   - REST API: http://{settings.host}:{settings.port}/api/stats")
    print(f"   - WebSocket: ws://{settings.host}:{settings.port}/ws\n")

    uvicorn.run(
        "netmon.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )
