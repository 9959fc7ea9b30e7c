# storefront/services/email_templates.py
from dataclasses import dataclass
from decimal import Decimal
from html import escape

from storefront.domain.order_status import OrderStatus
from storefront.domain.schemas import OrderSnapshot


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING_PAYMENT: "Oczekuje na płatność",
    OrderStatus.PAYMENT_CONFIRMED: "Płatność potwierdzona",
    OrderStatus.PROCESSING: "W realizacji",
    OrderStatus.SHIPPED: "Wysłane",
    OrderStatus.DELIVERED: "Dostarczone",
    OrderStatus.CANCELLED: "Anulowane",
}

# None = brak dedykowanej tresci, uzyj DEFAULT_STATUS_MESSAGE
STATUS_MESSAGES: dict[OrderStatus, str | None] = {
    OrderStatus.PENDING_PAYMENT: None,
    OrderStatus.PAYMENT_CONFIRMED: "Twoja płatność została potwierdzona! Przygotowujemy zamówienie.",
    OrderStatus.PROCESSING: "Twoje zamówienie jest w realizacji i wkrótce zostanie wysłane.",
    OrderStatus.SHIPPED: "Twoje zamówienie zostało wysłane! Możesz je śledzić numerem przesyłki.",
    OrderStatus.DELIVERED: "Twoje zamówienie zostało dostarczone. Dziękujemy za zakupy!",
    OrderStatus.CANCELLED: "Twoje zamówienie zostało anulowane.",
}

DEFAULT_STATUS_MESSAGE = "Twoje zamówienie zostało zaktualizowane."


def status_message(status: OrderStatus | str) -> str:
    try:
        status = OrderStatus(status)
    except ValueError:
        return DEFAULT_STATUS_MESSAGE
    return STATUS_MESSAGES.get(status) or DEFAULT_STATUS_MESSAGE


def status_label(status: OrderStatus | str) -> str:
    try:
        return STATUS_LABELS[OrderStatus(status)]
    except ValueError:
        return str(status)


def _money(value: Decimal) -> str:
    return f"{Decimal(value):.2f} zł"


def _greeting(snapshot: OrderSnapshot) -> str:
    return f"Cześć {snapshot.customer_name}," if snapshot.customer_name else "Cześć,"


def _page(title: str, body: str, shop_name: str) -> str:
    return f"""<!doctype html>
<html>
  <body style="font-family: Arial, sans-serif; color: #333; line-height: 1.5;">
    <div style="max-width: 600px; margin: 0 auto;">
      <h1 style="color: #6366f1; font-size: 24px;">{escape(title)}</h1>
      {body}
      <p style="color: #999; font-size: 12px;">&copy; {escape(shop_name)}</p>
    </div>
  </body>
</html>"""


def render_confirmation(snapshot: OrderSnapshot, shop_name: str) -> RenderedMessage:
    subject = f"Zamówienie potwierdzone - {shop_name} #{snapshot.order_id}"

    text_lines = [
        _greeting(snapshot),
        "",
        f"dziękujemy za zamówienie #{snapshot.order_id}. Płatność została potwierdzona.",
        "",
    ]
    for item in snapshot.items:
        text_lines.append(f"- {item.product_name} x{item.quantity}: {_money(item.subtotal)}")
    text_lines += [
        "",
        f"Suma częściowa: {_money(snapshot.subtotal)}",
        f"Dostawa: {_money(snapshot.shipping_cost)}",
        f"Podatek: {_money(snapshot.tax)}",
        f"Razem: {_money(snapshot.total)}",
    ]
    if snapshot.address:
        a = snapshot.address
        street = f"{a.street} {a.number}" + (f", {a.complement}" if a.complement else "")
        text_lines += ["", "Adres dostawy:", street, f"{a.zip_code} {a.city}, {a.state}"]
    text_lines += ["", f"- {shop_name}"]

    rows = "".join(
        f"<tr><td>{escape(i.product_name)}</td>"
        f"<td style=\"text-align: center;\">{i.quantity}</td>"
        f"<td style=\"text-align: right;\">{_money(i.subtotal)}</td></tr>"
        for i in snapshot.items
    )
    body = (
        f"<p>{escape(_greeting(snapshot))}</p>"
        f"<p>Dziękujemy za zamówienie #{snapshot.order_id}. Płatność została potwierdzona.</p>"
        f"<table style=\"width: 100%; border-collapse: collapse;\">{rows}</table>"
        f"<p>Suma częściowa: {_money(snapshot.subtotal)}<br>"
        f"Dostawa: {_money(snapshot.shipping_cost)}<br>"
        f"Podatek: {_money(snapshot.tax)}<br>"
        f"<strong>Razem: {_money(snapshot.total)}</strong></p>"
    )

    return RenderedMessage(
        subject=subject,
        text="\n".join(text_lines),
        html=_page(f"Zamówienie #{snapshot.order_id}", body, shop_name),
    )


def render_status_update(snapshot: OrderSnapshot, shop_name: str) -> RenderedMessage:
    subject = f"Aktualizacja zamówienia #{snapshot.order_id} - {shop_name}"
    label = status_label(snapshot.status)
    message = status_message(snapshot.status)

    text_lines = [
        _greeting(snapshot),
        "",
        f"Nowy status zamówienia #{snapshot.order_id}: {label}",
        message,
    ]
    if snapshot.tracking_code:
        text_lines.append(f"Numer przesyłki: {snapshot.tracking_code}")
    text_lines += ["", f"- {shop_name}"]

    body = (
        f"<p>{escape(_greeting(snapshot))}</p>"
        f"<div style=\"background-color: #f0f4ff; padding: 15px; border-left: 4px solid #6366f1;\">"
        f"<p><strong>Nowy status:</strong> {escape(label)}</p>"
        f"<p>{escape(message)}</p>"
    )
    if snapshot.tracking_code:
        body += f"<p>Numer przesyłki: {escape(snapshot.tracking_code)}</p>"
    body += "</div>"

    return RenderedMessage(
        subject=subject,
        text="\n".join(text_lines),
        html=_page(f"Aktualizacja zamówienia #{snapshot.order_id}", body, shop_name),
    )
