"""
通知测试
"""

from unittest.mock import MagicMock

import pytest
from lof_arbitrage.config.app_config import EmailSettings
from lof_arbitrage.notification import EmailAlertListener, EmailService, Notification, NotificationBus


def _email_settings(**kwargs):
    defaults = dict(
        enabled=True,
        sender_email='alert@example.com',
        sender_password='secret',
        recipients=['me@example.com'],
    )
    defaults.update(kwargs)
    return EmailSettings(**defaults)


class TestNotificationBus:
    """通知订阅发布测试"""

    def test_publish_to_all_listeners(self):
        """测试发布给所有订阅者"""
        bus = NotificationBus()
        received = []
        bus.subscribe(received.append)
        bus.subscribe(lambda n: received.append(n.title))

        note = Notification(title='161725 套利机会', body='溢价3.20%', type='arbitrage', duration=10000)
        assert bus.publish(note) == 2
        assert received == [note, '161725 套利机会']

    def test_unsubscribe(self):
        """测试取消订阅"""
        bus = NotificationBus()
        received = []
        unsubscribe = bus.subscribe(received.append)

        unsubscribe()
        unsubscribe()

        assert bus.publish(Notification('标题', '内容')) == 0
        assert received == []
        assert len(bus) == 0

    def test_listener_error_isolated(self):
        """测试单个订阅者出错不影响其他订阅者"""
        bus = NotificationBus()
        received = []

        def broken(notification):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        assert bus.publish(Notification('标题', '内容')) == 1
        assert len(received) == 1

    def test_notification_defaults(self):
        """测试通知默认值"""
        note = Notification('标题', '内容')
        assert note.to_dict() == {'title': '标题', 'body': '内容', 'type': 'info', 'duration': 5000}


class TestEmailAlerts:
    """邮件提醒测试"""

    def test_invalid_config(self):
        """测试邮件配置不完整"""
        with pytest.raises(ValueError):
            EmailService(_email_settings(sender_email=''))

    def test_listener_sends_arbitrage_only(self):
        """测试只转发套利提醒"""
        service = EmailService(_email_settings())
        service.send_email = MagicMock()
        listener = EmailAlertListener(service)

        listener(Notification('标题', '内容', type='info'))
        service.send_email.assert_not_called()

        listener(Notification('招商中证白酒A 套利机会', '溢价3.20%', type='arbitrage'))
        service.send_email.assert_called_once()
        assert '招商中证白酒A 套利机会' in service.send_email.call_args.kwargs['subject']

    def test_listener_respects_switch(self):
        """测试关闭即时提醒"""
        service = EmailService(_email_settings(send_immediate_alerts=False))
        service.send_email = MagicMock()

        EmailAlertListener(service)(Notification('标题', '内容', type='arbitrage'))
        service.send_email.assert_not_called()

    def test_listener_swallows_send_error(self):
        """测试发送失败只记录日志"""
        service = EmailService(_email_settings())
        service.send_email = MagicMock(side_effect=OSError("smtp down"))

        EmailAlertListener(service)(Notification('标题', '内容', type='arbitrage'))
        service.send_email.assert_called_once()
