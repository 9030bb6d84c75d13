"""QR images of redemption URLs (display only)."""
import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def qr_png_bytes(url: str, box_size: int = 10, border: int = 2) -> bytes:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=border)
    qr.add_data(url)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_url(url: str) -> str:
    return "data:image/png;base64," + base64.b64encode(qr_png_bytes(url)).decode("ascii")
