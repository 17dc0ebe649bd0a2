"""
通知事件

订阅者注册后会收到之后发布的所有通知；发布时按当前订阅者快照同步回调，
单个订阅者出错只记录日志，不影响其他订阅者。
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """通知内容"""
    title: str
    body: str
    type: str = 'info'           # info / success / warning / error / arbitrage
    duration: int = 5000         # 显示时长(毫秒)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'body': self.body,
            'type': self.type,
            'duration': self.duration,
        }


Listener = Callable[[Notification], None]


class NotificationBus:
    """通知订阅/发布"""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        订阅通知

        Args:
            callback: 回调函数

        Returns:
            取消订阅函数
        """
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def publish(self, notification: Notification) -> int:
        """
        发布通知

        Args:
            notification: 通知内容

        Returns:
            成功回调的订阅者数量
        """
        with self._lock:
            listeners = list(self._listeners)

        delivered = 0
        for callback in listeners:
            try:
                callback(notification)
                delivered += 1
            except Exception as e:
                logger.error(f"通知回调执行错误: {e}", exc_info=True)

        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
