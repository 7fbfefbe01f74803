from decimal import Decimal

from storefront.payment_qr import generate_upi_qr_png, upi_payment_url


def test_upi_url(store_config):
    url = upi_payment_url(store_config, 'FPABC', Decimal('234'))
    assert url == (
        'upi://pay?pa=flashpizza@upi&pn=Flash%20Pizza&am=234.00&cu=INR'
        '&tn=Order%20FPABC%20-%20Flash%20Pizza&tr=FPABC'
    )


def test_qr_png(store_config):
    png, error = generate_upi_qr_png(store_config, 'FPABC', Decimal('234'))
    assert error is None
    assert png.startswith(b'\x89PNG')


def test_qr_errors(store_config):
    assert generate_upi_qr_png({**store_config, 'upi_id': ' '}, 'FP1', 10) == (
        None, 'UPI is not configured for this store')
    assert generate_upi_qr_png(store_config, 'FP1', 0) == (None, 'Invalid amount')
    assert generate_upi_qr_png(store_config, '', 10) == (None, 'Invalid order')
