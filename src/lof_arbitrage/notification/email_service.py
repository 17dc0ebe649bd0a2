"""
邮件发送服务

提供SMTP邮件发送功能，用于把套利提醒同步发送到邮箱。
"""

import html
import logging
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config.app_config import EmailSettings
from ..utils.retry import retry
from .events import Notification

logger = logging.getLogger(__name__)


class EmailService:
    """
    邮件发送服务

    支持:
    - 163等邮箱SMTP(SSL/STARTTLS)
    - HTML格式邮件
    - 自动重试
    """

    def __init__(self, config: EmailSettings):
        """
        初始化邮件服务

        Args:
            config: 邮件配置

        Raises:
            ValueError: 邮件配置不完整
        """
        self.config = config

        errors = config.validate()
        if errors:
            raise ValueError(f"邮件配置错误: {', '.join(errors)}")

        logger.info(f"邮件服务已初始化 (SMTP: {config.smtp_server}:{config.smtp_port})")

    def _connect(self) -> smtplib.SMTP:
        if self.config.use_ssl:
            return smtplib.SMTP_SSL(self.config.smtp_server, self.config.smtp_port, timeout=30)

        server = smtplib.SMTP(self.config.smtp_server, self.config.smtp_port, timeout=30)
        server.starttls()
        return server

    @retry(max_attempts=3, delay=1.0, backoff=2.0, exceptions=(smtplib.SMTPException, OSError))
    def send_email(self, subject: str, body: str, body_type: str = 'html'):
        """
        发送邮件

        Args:
            subject: 邮件主题
            body: 邮件正文
            body_type: 正文类型 ('html' 或 'plain')

        Raises:
            smtplib.SMTPException: 邮件发送失败
        """
        if not self.config.enabled:
            logger.info("邮件功能已禁用，跳过发送")
            return

        msg = MIMEMultipart()
        msg['From'] = self.config.sender_email
        msg['To'] = ', '.join(self.config.recipients)
        msg['Subject'] = subject
        msg.attach(MIMEText(body, body_type, 'utf-8'))

        try:
            server = self._connect()
            try:
                server.login(self.config.sender_email, self.config.sender_password)
                server.send_message(msg)
            finally:
                server.quit()

            logger.info(f"邮件发送成功: {subject}")

        except smtplib.SMTPAuthenticationError:
            logger.error("邮箱认证失败，请检查邮箱地址和授权码")
            raise

        except smtplib.SMTPException as e:
            logger.error(f"邮件发送失败: {e}")
            raise

    def send_test_email(self):
        """发送测试邮件，用于验证邮件配置"""
        body = f"""
        <html>
        <body>
            <h2>LOF/ETF套利监控测试邮件</h2>
            <p>如果您收到这封邮件，说明邮件配置成功!</p>
            <ul>
                <li>发件人: {html.escape(self.config.sender_email)}</li>
                <li>SMTP服务器: {self.config.smtp_server}:{self.config.smtp_port}</li>
                <li>发送时间: {time.strftime('%Y-%m-%d %H:%M:%S')}</li>
            </ul>
        </body>
        </html>
        """
        self.send_email("[套利监控] 测试邮件", body, body_type='html')
        logger.info("测试邮件已发送")


def render_alert(notification: Notification) -> str:
    """生成套利提醒邮件正文"""
    return f"""
    <html>
    <body>
        <h2>{html.escape(notification.title)}</h2>
        <p>{html.escape(notification.body)}</p>
        <p style="color:#888">时间: {time.strftime('%Y-%m-%d %H:%M:%S')}</p>
    </body>
    </html>
    """


class EmailAlertListener:
    """把套利提醒转发为邮件的通知订阅者"""

    def __init__(self, service: EmailService, notification_type: str = 'arbitrage'):
        self.service = service
        self.notification_type = notification_type

    def __call__(self, notification: Notification):
        if notification.type != self.notification_type:
            return
        if not self.service.config.send_immediate_alerts:
            return

        try:
            self.service.send_email(
                subject=f"[套利监控] {notification.title}",
                body=render_alert(notification),
                body_type='html',
            )
        except Exception as e:
            logger.error(f"发送提醒邮件失败: {e}")
