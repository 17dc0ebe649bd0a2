"""
键值存储

账本和监控配置通过该接口读写，底层是一个扁平的JSON字典。
"""

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """存储文件无法读取，拒绝写入以免覆盖已有数据"""


class KeyValueStore(Protocol):
    """存储端口"""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """内存存储，值以深拷贝保存，行为与文件存储一致"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class JsonFileStore:
    """
    JSON文件存储

    文件结构:
    ~/.lof_arbitrage/data/store.json
        {
            "holdings": [...],
            "transactions": [...],
            "pendingTrades": [...],
            "arbitrage_monitor_config": {...}
        }
    """

    def __init__(self, path: Optional[Path] = None):
        """
        初始化文件存储

        Args:
            path: 存储文件路径，默认为 ~/.lof_arbitrage/data/store.json
        """
        if path is None:
            self.path = Path.home() / '.lof_arbitrage' / 'data' / 'store.json'
        else:
            self.path = Path(path).expanduser()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.debug(f"存储文件: {self.path}")

    def _read(self, strict: bool = False) -> Dict[str, Any]:
        """
        读取整个存储文件

        Args:
            strict: 为True时文件损坏抛出StorageError，否则按空存储处理

        Returns:
            存储内容
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"顶层不是对象: {type(data).__name__}")
        except (OSError, ValueError) as e:
            logger.error(f"读取存储文件失败 {self.path}: {e}")
            if strict:
                raise StorageError(f"存储文件已损坏，请检查或移走后重试: {self.path}") from e
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        # 先写临时文件再替换，避免写到一半的文件
        fd, tmp_path = tempfile.mkstemp(prefix=self.path.name, dir=str(self.path.parent))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read(strict=True)
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read(strict=True)
            if key in data:
                del data[key]
                self._write(data)

    def keys(self):
        with self._lock:
            return list(self._read().keys())
