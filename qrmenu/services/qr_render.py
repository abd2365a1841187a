"""
QR image rendering.

Turns a menu URL into a PNG data URL that the dashboard can display
or download directly.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QRStyle:
    fill_color: str = "#000000"
    back_color: str = "#FFFFFF"
    box_size: int = 10
    border: int = 2


class BaseQRRenderer(ABC):
    """Abstract QR renderer."""

    @abstractmethod
    def render(self, url: str, style: QRStyle = QRStyle()) -> str:
        """Return the rendered image as a ``data:`` URL."""
        pass


class PillowQRRenderer(BaseQRRenderer):
    """Renders PNG codes with the ``qrcode`` library (Pillow backend)."""

    def render(self, url: str, style: QRStyle = QRStyle()) -> str:
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,
            box_size=style.box_size,
            border=style.border,
        )
        qr.add_data(url)
        qr.make(fit=True)

        img = qr.make_image(fill_color=style.fill_color, back_color=style.back_color)
        img_buffer = BytesIO()
        img.save(img_buffer, format="PNG")

        encoded = base64.b64encode(img_buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"
