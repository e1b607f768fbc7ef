# Overview: Invoice e-mail rendering and SMTP delivery (best effort, never raises).

"""
Invoice E-mail

Sent after a sale has committed. Delivery is best effort: any failure is
logged at WARNING and reported back as False so the caller can set
email_sent in its response. Nothing here touches the database session's
transaction state beyond reading the committed sale.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from html import escape

from flask import current_app

from ..models import Sale


PAYMENT_LABELS = {
    "cash": "Cash",
    "card": "Card",
    "transfer": "Bank transfer",
}


def _money(amount: int, currency: str) -> str:
    return f"{amount:,} {currency}"


def render_invoice_text(sale: Sale, store_name: str, currency: str) -> str:
    lines = [
        store_name,
        f"Invoice {sale.invoice_number}",
        f"Date: {sale.created_at:%Y-%m-%d %H:%M} UTC" if sale.created_at else "",
        f"Customer: {sale.customer_name or 'Walk-in customer'}",
        f"Cashier: {sale.cashier.full_name if sale.cashier else 'N/A'}",
        "",
    ]
    for item in sale.items:
        name = item.product.name if item.product else f"#{item.product_id}"
        lines.append(
            f"{name}  x{item.quantity}  @ {_money(item.unit_price, currency)}"
            f"  = {_money(item.line_total, currency)}"
        )
    lines += [
        "",
        f"Subtotal: {_money(sale.subtotal, currency)}",
        f"Discount: {_money(sale.discount_amount, currency)}",
        f"Total: {_money(sale.total_amount, currency)}",
        f"Paid ({PAYMENT_LABELS.get(sale.payment_method, sale.payment_method)}): "
        f"{_money(sale.cash_received, currency)}",
        f"Change: {_money(sale.change_amount, currency)}",
        "",
        "Thank you for shopping with us!",
    ]
    return "\n".join(lines)


def render_invoice_html(sale: Sale, store_name: str, currency: str) -> str:
    rows = "".join(
        "<tr>"
        f"<td>{escape(item.product.name if item.product else str(item.product_id))}</td>"
        f"<td style=\"text-align:center\">{item.quantity}</td>"
        f"<td style=\"text-align:right\">{_money(item.unit_price, currency)}</td>"
        f"<td style=\"text-align:right\">{_money(item.line_total, currency)}</td>"
        "</tr>"
        for item in sale.items
    )
    cashier = sale.cashier.full_name if sale.cashier else "N/A"
    return (
        "<!DOCTYPE html><html><body style=\"font-family:Arial,sans-serif\">"
        f"<h1>{escape(store_name)}</h1>"
        f"<h2>Invoice {escape(sale.invoice_number)}</h2>"
        f"<p>Customer: {escape(sale.customer_name or 'Walk-in customer')}<br>"
        f"Cashier: {escape(cashier)}</p>"
        "<table style=\"width:100%;border-collapse:collapse\">"
        "<thead><tr><th>Product</th><th>Qty</th><th>Unit price</th><th>Amount</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
        f"<p>Subtotal: {_money(sale.subtotal, currency)}<br>"
        f"Discount: {_money(sale.discount_amount, currency)}<br>"
        f"<strong>Total: {_money(sale.total_amount, currency)}</strong><br>"
        f"Paid ({escape(PAYMENT_LABELS.get(sale.payment_method, sale.payment_method))}): "
        f"{_money(sale.cash_received, currency)}<br>"
        f"Change: {_money(sale.change_amount, currency)}</p>"
        "<p>Thank you for shopping with us!</p>"
        "</body></html>"
    )


def build_invoice_message(sale: Sale, recipient: str) -> EmailMessage:
    config = current_app.config
    store_name = config.get("STORE_NAME", "Mini Mart")
    currency = config.get("CURRENCY_LABEL", "VND")

    msg = EmailMessage()
    msg["Subject"] = f"Invoice {sale.invoice_number} - {store_name}"
    msg["From"] = f"{store_name} <{config['MAIL_SENDER']}>"
    msg["To"] = recipient
    msg.set_content(render_invoice_text(sale, store_name, currency))
    msg.add_alternative(render_invoice_html(sale, store_name, currency), subtype="html")
    return msg


def send_invoice_email(sale: Sale) -> bool:
    """Try to e-mail the invoice to sale.customer_email. Returns True if sent."""
    recipient = (sale.customer_email or "").strip()
    if not recipient:
        return False

    config = current_app.config
    if not config.get("MAIL_ENABLED"):
        current_app.logger.info("Mail disabled; invoice %s not e-mailed", sale.invoice_number)
        return False

    try:
        msg = build_invoice_message(sale, recipient)
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"], timeout=10) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        current_app.logger.warning(
            "Invoice e-mail for %s to %s failed: %s", sale.invoice_number, recipient, exc
        )
        return False

    current_app.logger.info("Invoice %s e-mailed to %s", sale.invoice_number, recipient)
    return True
