from flask import current_app
from email.message import EmailMessage
import logging
import smtplib
import ssl

logger = logging.getLogger(__name__)


def format_vnd(amount):
    return f"{int(amount or 0):,} VND"


def is_configured():
    cfg = current_app.config
    return bool(cfg.get('SMTP_HOST') and cfg.get('SMTP_USER'))


def send_mail(to_email, subject, html):
    cfg = current_app.config
    msg = EmailMessage()
    msg['Subject'] = subject
    msg['From'] = cfg.get('SMTP_FROM') or cfg['SMTP_USER']
    msg['To'] = to_email
    msg.set_content(html, subtype='html')

    context = ssl.create_default_context()
    if cfg.get('SMTP_SECURE'):
        server = smtplib.SMTP_SSL(
            cfg['SMTP_HOST'], cfg['SMTP_PORT'], context=context, timeout=10)
    else:
        server = smtplib.SMTP(cfg['SMTP_HOST'], cfg['SMTP_PORT'], timeout=10)
    with server:
        if not cfg.get('SMTP_SECURE'):
            server.starttls(context=context)
        server.login(cfg['SMTP_USER'], cfg.get('SMTP_PASS', ''))
        server.send_message(msg)


def send_order_confirmation(user, order):
    """Best effort: never raises, a failed mail must not fail checkout."""
    email = getattr(user, 'email', None)
    if not is_configured() or not email:
        logger.info("Order created %s user email %s", order.id, email)
        return False
    html = f"<p>Đơn hàng #{order.id} - Tổng: {format_vnd(order.total)}</p>"
    try:
        send_mail(email, 'Xác nhận đơn hàng', html)
    except Exception:
        logger.exception("Mail send error for order %s", order.id)
        return False
    logger.info("Order confirmation sent for order %s", order.id)
    return True
