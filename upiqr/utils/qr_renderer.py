"""
UPI 收款二维码渲染

流程：生成 UPI 链接 -> 按输出格式编码（SVG / PNG）-> 可选叠加 logo。
logo 叠加失败时降级为无 logo 二维码，不影响整体结果。
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from upiqr.config.settings import QR_DARK, QR_LIGHT
from upiqr.models.payment import OutputFormat, QrRenderRequest
from upiqr.utils.graphics_backend import GraphicsBackend, get_graphics_backend
from upiqr.utils.logo_overlay import composite_logo, validate_logo_size
from upiqr.utils.qr_code import make_qr_png_bytes, make_qr_svg, png_to_data_uri
from upiqr.utils.upi_link import build_link

logger = logging.getLogger(__name__)


async def render_qr(
    request: QrRenderRequest,
    *,
    backend: Optional[GraphicsBackend] = None,
    now: Optional[datetime] = None,
) -> Union[str, bytes, None]:
    """
    渲染收款二维码。

    返回值：
    - OutputFormat.DATA_URI：data:image/png;base64,...
    - OutputFormat.PNG：PNG 原始字节
    - OutputFormat.SVG：SVG 文本（忽略 logo）
    - 链接为空时返回 None

    ValidationError（支付参数 / logoSize）原样抛出；logo 加载或合成失败只记录日志。
    """
    link = build_link(request.intent, now=now)
    if not link:
        return None

    dark = request.dark or QR_DARK
    light = request.light or QR_LIGHT
    output = OutputFormat.parse(request.output)

    if output is OutputFormat.SVG:
        if request.logo:
            logger.debug("SVG 输出不支持 logo，已忽略")
        return make_qr_svg(link, dark=dark, light=light)

    png = make_qr_png_bytes(link, dark=dark, light=light)

    if request.logo:
        logo_size = validate_logo_size(request.logo_size)
        result = await composite_logo(
            png,
            request.logo,
            backend=backend or get_graphics_backend(),
            logo_size=logo_size,
        )
        if not result.ok:
            logger.warning(f"logo 叠加失败，降级为无 logo 二维码: {result.failure}", exc_info=result.failure)
        png = result.unwrap_or(png)

    if output is OutputFormat.PNG:
        return png
    return png_to_data_uri(png)


async def upi_qr(
    options: Union[QrRenderRequest, Mapping[str, Any]],
    *,
    backend: Optional[GraphicsBackend] = None,
) -> Union[str, bytes, None]:
    """异步生成 UPI 收款二维码；options 可为 QrRenderRequest 或字典"""
    request = options if isinstance(options, QrRenderRequest) else QrRenderRequest.from_mapping(options)
    return await render_qr(request, backend=backend)
