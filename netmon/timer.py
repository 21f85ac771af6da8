import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTimer:
    """고정 주기로 콜백을 실행하는 데몬 스레드 타이머"""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "periodic-timer"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """타이머 시작 (이미 실행 중이면 무시)"""
        with self._lock:
            if self._thread is not None:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                daemon=True,
                name=self.name,
            )
            self._thread.start()

    def stop(self, timeout: float = 3.0):
        """타이머 중지 (여러 번 호출해도 안전)"""
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _run(self, stop_event: threading.Event):
        # wait()가 True면 stop 요청
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("%s callback failed", self.name)
