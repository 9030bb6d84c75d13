"""Ticket codes and QR rendering."""
import base64

from tapreview.services.codes import CODE_ALPHABET, generate_code, normalize_code, redemption_url
from tapreview.services.qr import qr_data_url, qr_png_bytes


def test_generate_code_length_and_alphabet():
    codes = {generate_code() for _ in range(200)}
    assert len(codes) == 200
    for code in codes:
        assert len(code) == 10
        assert set(code) <= set(CODE_ALPHABET)


def test_alphabet_excludes_confusable_characters():
    for ch in "01IO":
        assert ch not in CODE_ALPHABET


def test_generate_code_custom_length():
    assert len(generate_code(6)) == 6


def test_normalize_code():
    assert normalize_code("  abc123xyz ") == "ABC123XYZ"
    assert normalize_code(None) == ""


def test_redemption_url():
    assert redemption_url("ABCDEFGHJK") == "http://test.local/q/ABCDEFGHJK"


def test_qr_png_and_data_url():
    png = qr_png_bytes("http://test.local/q/ABCDEFGHJK")
    assert png.startswith(b"\x89PNG")
    data_url = qr_data_url("http://test.local/q/ABCDEFGHJK")
    prefix = "data:image/png;base64,"
    assert data_url.startswith(prefix)
    assert base64.b64decode(data_url[len(prefix):]) == png
