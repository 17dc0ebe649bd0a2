"""
应用配置管理

提供配置加载、验证、保存以及日志初始化等功能。
"""

import logging
import logging.handlers
import os
import toml
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.lof_arbitrage' / 'config' / 'config.toml'


@dataclass
class StorageSettings:
    """存储设置"""
    store_path: str = "~/.lof_arbitrage/data/store.json"

    def get_store_path(self) -> Path:
        """获取展开后的存储文件路径"""
        return Path(self.store_path).expanduser()


@dataclass
class MonitorSettings:
    """监控运行设置（监控列表与阈值保存在存储中）"""
    market_hours_only: bool = False       # 仅在交易时段内检查
    notification_duration: int = 10000    # 提醒显示时长(毫秒)
    max_log_entries: int = 20             # 保留的监控日志条数


@dataclass
class ResolverSettings:
    """净值确认设置"""
    debounce_ms: int = 500                # 输入防抖(毫秒)
    cutoff_hour: int = 15                 # 当日申赎截止时间


@dataclass
class EmailSettings:
    """邮件设置"""
    enabled: bool = False
    smtp_server: str = "smtp.163.com"
    smtp_port: int = 465
    use_ssl: bool = True
    sender_email: str = ""
    sender_password: str = ""
    recipients: List[str] = field(default_factory=list)
    send_immediate_alerts: bool = True

    def validate(self) -> List[str]:
        """
        验证邮件配置

        Returns:
            错误信息列表，空列表表示验证通过
        """
        errors = []

        if self.enabled:
            if not self.sender_email:
                errors.append("发件人邮箱未配置 (sender_email)")
            if not self.sender_password:
                errors.append("发件人授权码未配置 (sender_password)")
            if not self.recipients:
                errors.append("收件人列表为空 (recipients)")

        return errors


@dataclass
class LoggingSettings:
    """日志设置"""
    level: str = "INFO"
    file_path: str = "~/.lof_arbitrage/logs/monitor.log"
    max_file_size_mb: int = 10
    backup_count: int = 5

    def get_file_path(self) -> Path:
        """获取展开后的日志文件路径"""
        return Path(self.file_path).expanduser()


@dataclass
class AppConfig:
    """应用完整配置"""
    storage: StorageSettings = field(default_factory=StorageSettings)
    monitor: MonitorSettings = field(default_factory=MonitorSettings)
    resolver: ResolverSettings = field(default_factory=ResolverSettings)
    email: EmailSettings = field(default_factory=EmailSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_file(cls, config_path: Optional[Path] = None) -> 'AppConfig':
        """
        从文件加载配置

        Args:
            config_path: 配置文件路径，默认为 ~/.lof_arbitrage/config/config.toml

        Returns:
            配置对象
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        else:
            config_path = Path(config_path).expanduser()

        if not config_path.exists():
            logger.warning(f"配置文件不存在: {config_path}，使用默认配置")
            return cls.default()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = toml.load(f)

            # 支持环境变量覆盖敏感信息
            email = data.setdefault('email', {})
            email['sender_email'] = os.getenv('LOF_SENDER_EMAIL', email.get('sender_email', ''))
            email['sender_password'] = os.getenv('LOF_SENDER_PASSWORD', email.get('sender_password', ''))

            config = cls(
                storage=StorageSettings(**data.get('storage', {})),
                monitor=MonitorSettings(**data.get('monitor', {})),
                resolver=ResolverSettings(**data.get('resolver', {})),
                email=EmailSettings(**email),
                logging=LoggingSettings(**data.get('logging', {})),
            )

            logger.info(f"已从 {config_path} 加载配置")
            return config

        except Exception as e:
            logger.error(f"加载配置文件失败: {e}，使用默认配置")
            return cls.default()

    @classmethod
    def default(cls) -> 'AppConfig':
        """
        获取默认配置

        Returns:
            默认配置对象
        """
        return cls()

    def to_dict(self) -> dict:
        return {
            'storage': {
                'store_path': self.storage.store_path,
            },
            'monitor': {
                'market_hours_only': self.monitor.market_hours_only,
                'notification_duration': self.monitor.notification_duration,
                'max_log_entries': self.monitor.max_log_entries,
            },
            'resolver': {
                'debounce_ms': self.resolver.debounce_ms,
                'cutoff_hour': self.resolver.cutoff_hour,
            },
            'email': {
                'enabled': self.email.enabled,
                'smtp_server': self.email.smtp_server,
                'smtp_port': self.email.smtp_port,
                'use_ssl': self.email.use_ssl,
                'sender_email': self.email.sender_email,
                'sender_password': self.email.sender_password,
                'recipients': self.email.recipients,
                'send_immediate_alerts': self.email.send_immediate_alerts,
            },
            'logging': {
                'level': self.logging.level,
                'file_path': self.logging.file_path,
                'max_file_size_mb': self.logging.max_file_size_mb,
                'backup_count': self.logging.backup_count,
            },
        }

    def save(self, config_path: Optional[Path] = None):
        """
        保存配置到文件

        Args:
            config_path: 配置文件路径，默认为 ~/.lof_arbitrage/config/config.toml
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        else:
            config_path = Path(config_path).expanduser()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            toml.dump(self.to_dict(), f)

        logger.info(f"配置已保存到: {config_path}")

    def validate(self) -> List[str]:
        """
        验证配置

        Returns:
            错误信息列表，空列表表示验证通过
        """
        errors = []
        errors.extend(self.email.validate())

        if self.resolver.debounce_ms < 0:
            errors.append("防抖时间不能为负数")
        if not 0 <= self.resolver.cutoff_hour <= 23:
            errors.append(f"无效的截止时间: {self.resolver.cutoff_hour}")
        if self.logging.level.upper() not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
            errors.append(f"无效的日志级别: {self.logging.level}")

        return errors


def setup_logging(settings: Optional[LoggingSettings] = None, console: bool = True):
    """
    初始化日志（滚动文件 + 控制台）

    Args:
        settings: 日志设置
        console: 是否同时输出到控制台
    """
    settings = settings or LoggingSettings()
    log_file = settings.get_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = [
        logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=settings.max_file_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding='utf-8',
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=getattr(logging, settings.level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
