"""
二维码中心 logo 叠加

合成失败不会抛出，而是以 CompositeResult(failure=...) 返回，由调用方降级为无 logo 二维码。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from upiqr.errors import CompositeFailure, ValidationError
from upiqr.utils.graphics_backend import GraphicsBackend, ImageSource
from upiqr.utils.upi_link import as_number

logger = logging.getLogger(__name__)

MIN_LOGO_SIZE = 5
# 未指定尺寸时 logo 边长 = 二维码宽度 / 6
LOGO_WIDTH_RATIO = 6


@dataclass(frozen=True)
class LogoPlacement:
    size: float
    x: float
    y: float


@dataclass(frozen=True)
class CompositeResult:
    image: Optional[bytes] = None
    failure: Optional[CompositeFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.image is not None

    def unwrap_or(self, fallback: bytes) -> bytes:
        return self.image if self.ok else fallback


def validate_logo_size(logo_size: Any) -> Optional[float]:
    if logo_size is None:
        return None
    size = as_number(logo_size)
    if size is None or size <= MIN_LOGO_SIZE:
        raise ValidationError(f'"logoSize" 必须是大于 {MIN_LOGO_SIZE} 的数字（像素）。收到: {logo_size}')
    return float(size)


def compute_logo_placement(qr_width: float, qr_height: float, logo_size: Optional[float] = None) -> LogoPlacement:
    size = logo_size or qr_width / LOGO_WIDTH_RATIO
    return LogoPlacement(
        size=size,
        x=(qr_width - size) / 2,
        y=(qr_height - size) / 2,
    )


async def composite_logo(
    qr_png: bytes,
    logo: ImageSource,
    *,
    backend: GraphicsBackend,
    logo_size: Optional[float] = None,
) -> CompositeResult:
    """把 logo 居中绘制到二维码上，返回新的 PNG"""
    try:
        qr_img = await backend.load_image(qr_png)
        width, height = backend.image_size(qr_img)

        surface = await backend.create_surface(width, height)
        await backend.composite_at(surface, qr_img, 0, 0, width, height)

        logo_img = await backend.load_image(logo)
        placement = compute_logo_placement(width, height, logo_size)
        await backend.composite_at(surface, logo_img, placement.x, placement.y, placement.size, placement.size)

        png = await backend.encode_to_png(surface)
    except Exception as e:
        return CompositeResult(failure=CompositeFailure(f"logo 合成失败（{backend.name}）: {e}", cause=e))

    logger.debug(f"logo 已合成: {width}x{height}, logo 边长 {placement.size}")
    return CompositeResult(image=png)
