"""
通知模块

提供进程内通知订阅/发布和邮件提醒。
"""

from .email_service import EmailAlertListener, EmailService
from .events import Notification, NotificationBus

__all__ = [
    "Notification",
    "NotificationBus",
    "EmailService",
    "EmailAlertListener",
]
