"""
二维码编码（segno）

固定 margin=2、scale=8；颜色由调用方决定。
"""

from __future__ import annotations

import base64
import io

import segno

from upiqr.config.settings import QR_DARK, QR_ERROR_LEVEL, QR_LIGHT

QR_MARGIN = 2
QR_SCALE = 8

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


def _make(text: str) -> segno.QRCode:
    text = (text or "").strip()
    if not text:
        raise ValueError("QR text 不能为空")
    # 强制普通 QR（短内容时 segno.make 可能生成 Micro QR，支付应用无法识别）
    return segno.make_qr(text, error=QR_ERROR_LEVEL)


def make_qr_png_bytes(text: str, *, dark: str = QR_DARK, light: str = QR_LIGHT) -> bytes:
    """生成二维码 PNG（二进制）"""
    qr = _make(text)
    buf = io.BytesIO()
    qr.save(buf, kind="png", scale=QR_SCALE, border=QR_MARGIN, dark=dark, light=light)
    return buf.getvalue()


def make_qr_svg(text: str, *, dark: str = QR_DARK, light: str = QR_LIGHT) -> str:
    """生成二维码 SVG 文本"""
    qr = _make(text)
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=QR_SCALE, border=QR_MARGIN, dark=dark, light=light, xmldecl=False)
    return buf.getvalue().decode("utf-8")


def png_to_data_uri(png: bytes) -> str:
    return PNG_DATA_URI_PREFIX + base64.b64encode(png).decode("ascii")
