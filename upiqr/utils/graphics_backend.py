"""
图形后端：解码图片、创建画布、定点绘制、导出 PNG

两种实现：
- PillowBackend：服务端/无界面环境
- BrowserCanvasBackend：浏览器内（Pyodide），使用原生 <canvas> 与 Image

进程内只选择一次（get_graphics_backend），也可通过 set_graphics_backend 注入。
"""
from __future__ import annotations

import asyncio
import base64
import io
import logging
import sys
from typing import Any, Callable, Optional, Protocol, Tuple, Union

from PIL import Image

from upiqr.config import settings
from upiqr.utils.logo_source import load_logo_bytes

logger = logging.getLogger(__name__)

ImageSource = Union[str, bytes]


class GraphicsBackend(Protocol):
    name: str

    async def load_image(self, source: ImageSource) -> Any:
        """加载并解码图片（bytes / 路径 / URL / data URI）"""
        ...

    def image_size(self, image: Any) -> Tuple[int, int]:
        ...

    async def create_surface(self, width: int, height: int) -> Any:
        ...

    async def composite_at(self, surface: Any, image: Any, x: float, y: float, width: float, height: float) -> None:
        """把 image 缩放到 width x height 后绘制到 surface 的 (x, y)，按透明度叠加"""
        ...

    async def encode_to_png(self, surface: Any) -> bytes:
        ...


class PillowBackend:
    name = "pillow"

    def __init__(self, *, fetch_timeout: Optional[float] = None):
        self.fetch_timeout = fetch_timeout

    async def load_image(self, source: ImageSource) -> Image.Image:
        data = await load_logo_bytes(source, timeout_seconds=self.fetch_timeout)
        img = Image.open(io.BytesIO(data))
        img.load()
        return img.convert("RGBA")

    def image_size(self, image: Image.Image) -> Tuple[int, int]:
        return image.size

    async def create_surface(self, width: int, height: int) -> Image.Image:
        return Image.new("RGBA", (int(width), int(height)), (0, 0, 0, 0))

    async def composite_at(
        self,
        surface: Image.Image,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        # Pillow 只支持整数像素，小数坐标四舍五入
        target = (max(1, round(width)), max(1, round(height)))
        if image.size != target:
            image = image.resize(target, Image.LANCZOS)
        surface.paste(image, (round(x), round(y)), image)

    async def encode_to_png(self, surface: Image.Image) -> bytes:
        buf = io.BytesIO()
        surface.save(buf, format="PNG")
        return buf.getvalue()


def _identity(fn: Callable[..., Any]) -> Callable[..., Any]:
    return fn


class BrowserCanvasBackend:
    """
    浏览器 canvas 后端。

    window 为宿主的全局对象（Pyodide 下即 js 模块），需提供
    document.createElement("canvas") 与 Image。图片加载通过 onload/onerror
    回调完成，onerror 使本次加载失败。
    """

    name = "browser"

    def __init__(self, window: Any, *, wrap_callback: Callable[[Callable[..., Any]], Any] = _identity):
        self.window = window
        self.wrap_callback = wrap_callback

    def _new_image(self) -> Any:
        image_cls = self.window.Image
        # Pyodide 中 JS 类通过 .new() 实例化
        if hasattr(image_cls, "new"):
            return image_cls.new()
        return image_cls()

    async def load_image(self, source: ImageSource) -> Any:
        if isinstance(source, (bytes, bytearray)):
            src = "data:image/png;base64," + base64.b64encode(bytes(source)).decode("ascii")
        else:
            src = str(source)

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        img = self._new_image()

        fired = []

        def on_load(*_args: Any) -> None:
            fired.append("load")
            if not future.done():
                future.set_result(img)

        def on_error(*_args: Any) -> None:
            fired.append("error")
            if not future.done():
                future.set_exception(RuntimeError(f"图片加载失败: {src[:80]}"))

        load_proxy = self.wrap_callback(on_load)
        error_proxy = self.wrap_callback(on_error)
        img.crossOrigin = "anonymous"
        img.onload = load_proxy
        img.onerror = error_proxy
        img.src = src
        try:
            return await future
        finally:
            # 只会触发其中一个回调，另一个一次性代理需手动释放
            img.onload = None
            img.onerror = None
            for kind, proxy in (("load", load_proxy), ("error", error_proxy)):
                destroy = getattr(proxy, "destroy", None)
                if kind not in fired and destroy is not None:
                    destroy()

    def image_size(self, image: Any) -> Tuple[int, int]:
        return int(image.width), int(image.height)

    async def create_surface(self, width: int, height: int) -> Any:
        canvas = self.window.document.createElement("canvas")
        canvas.width = int(width)
        canvas.height = int(height)
        return canvas

    async def composite_at(self, surface: Any, image: Any, x: float, y: float, width: float, height: float) -> None:
        ctx = surface.getContext("2d")
        ctx.drawImage(image, x, y, width, height)

    async def encode_to_png(self, surface: Any) -> bytes:
        data_url = str(surface.toDataURL("image/png"))
        _, _, payload = data_url.partition(",")
        return base64.b64decode(payload)


def _browser_window() -> Optional[Any]:
    """仅在 Pyodide（emscripten）且存在 window/document 时返回宿主全局对象"""
    if sys.platform != "emscripten":
        return None
    try:
        import js  # type: ignore
    except ImportError:
        return None
    if getattr(js, "document", None) is None or getattr(js, "Image", None) is None:
        return None
    return js


def _pyodide_wrap_callback() -> Callable[[Callable[..., Any]], Any]:
    from pyodide.ffi import create_once_callable  # type: ignore

    return create_once_callable


def detect_graphics_backend(preference: Optional[str] = None) -> GraphicsBackend:
    preference = (preference or settings.GRAPHICS_BACKEND or "auto").lower()
    if preference == "pillow":
        return PillowBackend(fetch_timeout=settings.LOGO_FETCH_TIMEOUT)

    window = _browser_window()
    if window is not None:
        return BrowserCanvasBackend(window, wrap_callback=_pyodide_wrap_callback())
    if preference == "browser":
        raise RuntimeError("当前运行环境没有 window/document，无法使用 browser 图形后端")
    return PillowBackend(fetch_timeout=settings.LOGO_FETCH_TIMEOUT)


_backend: Optional[GraphicsBackend] = None


def get_graphics_backend() -> GraphicsBackend:
    global _backend
    if _backend is None:
        _backend = detect_graphics_backend()
        logger.debug(f"图形后端: {_backend.name}")
    return _backend


def set_graphics_backend(backend: Optional[GraphicsBackend]) -> None:
    """注入图形后端；传 None 则下次使用时重新探测"""
    global _backend
    _backend = backend
