"""QR rendering for peer configurations."""

import io

import qrcode
import qrcode.image.svg
from qrcode.constants import ERROR_CORRECT_M


def _build(data: str, border: int) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def render_svg(data: str, border: int = 1) -> str:
    """Render ``data`` as a standalone SVG document."""
    img = _build(data, border).make_image(image_factory=qrcode.image.svg.SvgPathImage)

    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue().decode("utf-8")


def render_text(data: str, border: int = 1) -> str:
    """Render ``data`` as block characters for a terminal."""
    matrix = _build(data, border).get_matrix()
    return "\n".join("".join("██" if cell else "  " for cell in row) for row in matrix)
