"""
UPI payment link and QR generation for orders.
Uses qrcode library; the link follows the upi://pay deep-link format.
"""
import io
from decimal import Decimal
from urllib.parse import quote

import qrcode


def upi_payment_url(config, order_id, amount):
    """
    Build the upi://pay link for an order.
    pa = payee VPA, pn = payee name, am = amount (2 places), tr = order ref.
    """
    amount = Decimal(str(amount)).quantize(Decimal('0.01'))
    note = f'Order {order_id} - {config["name"]}'
    return (
        f'upi://pay?pa={config["upi_id"]}'
        f'&pn={quote(config["name"])}'
        f'&am={amount}'
        f'&cu=INR'
        f'&tn={quote(note)}'
        f'&tr={order_id}'
    )


def generate_upi_qr_png(config, order_id, amount):
    """
    Generate PNG bytes for a UPI payment QR.
    Returns (png_bytes, None) on success or (None, error_message) on failure.
    """
    if not order_id:
        return None, 'Invalid order'
    if not (config.get('upi_id') or '').strip():
        return None, 'UPI is not configured for this store'
    if amount is None or Decimal(str(amount)) <= 0:
        return None, 'Invalid amount'
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(upi_payment_url(config, order_id, amount))
    qr.make(fit=True)
    img = qr.make_image(fill_color='black', back_color='white')
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    buffer.seek(0)
    return buffer.getvalue(), None
