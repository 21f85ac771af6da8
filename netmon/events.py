from collections import defaultdict
from typing import Any, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

PACKET = "packet"
ALERT = "alert"

Handler = Callable[[Any], None]


class SubscriptionRegistry:
    """이벤트 종류별 콜백 등록 및 전달 (fan-out)"""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, kind: str, handler: Handler) -> Callable[[], None]:
        """핸들러 등록, 해제 함수 반환"""
        self._handlers[kind].append(handler)
        logger.debug("subscribed %r to %s events", handler, kind)

        def unsubscribe():
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, kind: str, event: Any) -> None:
        """등록 순서대로 모든 핸들러를 동기 호출"""
        # 콜백 안에서 구독이 바뀌어도 이번 이벤트는 기존 목록으로 전달
        for handler in list(self._handlers.get(kind, ())):
            handler(event)

    def handler_count(self, kind: str) -> int:
        return len(self._handlers.get(kind, ()))
