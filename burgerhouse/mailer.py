import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, Optional

from . import config

log = logging.getLogger("burgerhouse.mailer")

STATUS_MESSAGES = {
    "received": {
        "subject": "Order Received - Burger House",
        "heading": "Order Confirmed!",
        "message": "We have received your order and it will be processed shortly.",
        "color": "#3b82f6",
    },
    "preparing": {
        "subject": "Your Order is Being Prepared - Burger House",
        "heading": "Cooking in Progress!",
        "message": "Our chefs are preparing your delicious meal with care.",
        "color": "#f59e0b",
    },
    "out_for_delivery": {
        "subject": "Your Order is On the Way - Burger House",
        "heading": "Out for Delivery!",
        "message": "Your order is on its way to you. Get ready to enjoy!",
        "color": "#8b5cf6",
    },
    "delivered": {
        "subject": "Order Delivered - Burger House",
        "heading": "Order Delivered!",
        "message": "Your order has been delivered. Enjoy your meal!",
        "color": "#22c55e",
    },
    "cancelled": {
        "subject": "Order Cancelled - Burger House",
        "heading": "Order Cancelled",
        "message": "Your order has been cancelled. If you have any questions, please contact us.",
        "color": "#ef4444",
    },
}


def smtp_configured() -> bool:
    return bool(config.SMTP_HOST and config.SMTP_USER and config.SMTP_PASSWORD)


def send_email(to_addr: str, subject: str, html_body: str, text_body: str, reply_to: Optional[str] = None) -> bool:
    """Send one message; returns False (and logs) instead of raising."""
    if not to_addr:
        log.warning("send_email skipped: missing recipient (subject=%r)", subject)
        return False
    if not smtp_configured():
        log.info("SMTP not configured; would send %r to %s:\n%s", subject, to_addr, text_body)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{config.MAIL_FROM_NAME} <{config.MAIL_FROM}>"
    msg["To"] = to_addr
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    try:
        with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=20) as s:
            s.ehlo(); s.starttls(); s.ehlo()
            s.login(config.SMTP_USER, config.SMTP_PASSWORD)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError):
        log.exception("send_email failed to=%s subject=%r", to_addr, subject)
        return False
    log.info("Email sent to %s (%s)", to_addr, subject)
    return True


def _fmt_money(amount: Any) -> str:
    try:
        return f"Rs. {float(amount):,.2f}"
    except (TypeError, ValueError):
        return f"Rs. {amount}"


def render_order_status(order: Dict[str, Any], status: str) -> Optional[Dict[str, str]]:
    info = STATUS_MESSAGES.get(status)
    if info is None:
        return None
    details = order.get("deliveryDetails") or {}
    name = details.get("fullName") or "there"
    rows = []
    lines = []
    for it in order.get("items") or []:
        qty = int(it.get("quantity") or 1)
        line_total = _fmt_money((it.get("price") or 0) * qty)
        rows.append(
            f"<tr><td>{html.escape(str(it.get('name', '')))} &times; {qty}</td>"
            f"<td style=\"text-align:right\">{line_total}</td></tr>"
        )
        lines.append(f"  {it.get('name', '')} x{qty}  {line_total}")

    total = _fmt_money(order.get("totalAmount"))
    number = order.get("orderNumber", "")
    html_body = (
        f"<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<div style=\"background:{info['color']};color:#fff;padding:24px;text-align:center;\">"
        f"<h2 style=\"margin:0\">{html.escape(info['heading'])}</h2>"
        f"<p>{html.escape(info['message'])}</p></div>"
        f"<p>Hello {html.escape(name)},</p>"
        f"<p>Order <strong>{html.escape(number)}</strong></p>"
        f"<table style=\"width:100%\">{''.join(rows)}"
        f"<tr><td><strong>Total</strong></td><td style=\"text-align:right\"><strong>{total}</strong></td></tr>"
        f"</table>"
        f"<p style=\"color:#666;font-size:12px\">Payment: cash on delivery</p></div>"
    )
    text_body = "\n".join(
        [f"{info['heading']}", info["message"], "", f"Order {number}"] + lines + [f"Total: {total}"]
    )
    return {"subject": info["subject"], "html": html_body, "text": text_body}


def send_order_status_email(order: Dict[str, Any], status: str) -> bool:
    rendered = render_order_status(order, status)
    if rendered is None:
        log.warning("No email template for status %r", status)
        return False
    return send_email(order.get("email", ""), rendered["subject"], rendered["html"], rendered["text"])


def send_password_reset_email(user: Dict[str, Any], reset_url: str) -> bool:
    name = user.get("name") or "there"
    html_body = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        "<h2 style=\"color: #f97316;\">Burger House Admin</h2>"
        f"<p>Hello {html.escape(name)},</p>"
        "<p>You requested to reset your password. Click the link below to set a new password:</p>"
        f"<p><a href=\"{html.escape(reset_url, quote=True)}\">Reset Password</a></p>"
        f"<p>This link will expire in {config.RESET_TOKEN_TTL_MIN} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p></div>"
    )
    text_body = (
        f"Hello {name},\n\nReset your password here: {reset_url}\n"
        f"This link will expire in {config.RESET_TOKEN_TTL_MIN} minutes."
    )
    return send_email(user.get("email", ""), "Password Reset - Burger House Admin", html_body, text_body)


def send_contact_message(name: str, email: str, subject: str, message: str) -> bool:
    """Forward a contact-form submission to the restaurant inbox, replying to the sender."""
    html_body = (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        "<h2 style=\"color: #f97316; border-bottom: 2px solid #f97316; padding-bottom: 10px;\">"
        "New Contact Form Submission</h2>"
        "<div style=\"background: #f9fafb; padding: 20px; border-radius: 8px;\">"
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}</p>"
        f"<p><strong>Subject:</strong> {html.escape(subject)}</p></div>"
        "<h3 style=\"color: #374151;\">Message:</h3>"
        f"<p style=\"white-space: pre-wrap;\">{html.escape(message)}</p>"
        "<p style=\"color: #9ca3af; font-size: 12px;\">Sent from the Burger House contact form.</p></div>"
    )
    text_body = f"From: {name} <{email}>\nSubject: {subject}\n\n{message}\n"
    return send_email(config.CONTACT_EMAIL, f"Contact Form: {subject}", html_body, text_body, reply_to=email)
