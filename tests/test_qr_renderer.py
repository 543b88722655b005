"""
收款二维码渲染流程测试
"""
import base64
import io
import logging
import os

import pytest
from aiohttp import test_utils, web
from PIL import Image

from upiqr import OutputFormat, PaymentIntent, QrRenderRequest, ValidationError, upi_qr
from upiqr.utils import qr_renderer
from upiqr.utils.qr_renderer import render_qr

PREFIX = "data:image/png;base64,"
INTENT = PaymentIntent(payee_upi="a@bank", payee_name="A", amount=10)


def _decode_data_uri(uri):
    assert uri.startswith(PREFIX)
    png = base64.b64decode(uri[len(PREFIX):], validate=True)
    img = Image.open(io.BytesIO(png))
    img.load()
    return img


@pytest.mark.asyncio
async def test_default_output_is_png_data_uri():
    uri = await render_qr(QrRenderRequest(intent=INTENT))
    img = _decode_data_uri(uri)
    assert img.format == "PNG"
    assert img.size[0] == img.size[1]


@pytest.mark.asyncio
async def test_raw_png_output():
    png = await render_qr(QrRenderRequest(intent=INTENT, output=OutputFormat.PNG))
    assert isinstance(png, bytes)
    assert png.startswith(b"\x89PNG")


@pytest.mark.asyncio
async def test_svg_ignores_logo(logo_png):
    plain = await render_qr(QrRenderRequest(intent=INTENT, output=OutputFormat.SVG))
    with_logo = await render_qr(
        QrRenderRequest(intent=INTENT, output=OutputFormat.SVG, logo=logo_png, logo_size=2)
    )
    assert "<svg" in plain
    assert with_logo == plain


@pytest.mark.asyncio
async def test_logo_is_composited(logo_png):
    plain = await render_qr(QrRenderRequest(intent=INTENT))
    uri = await render_qr(QrRenderRequest(intent=INTENT, logo=logo_png))
    assert uri != plain
    img = _decode_data_uri(uri).convert("RGB")
    width, height = img.size
    assert img.getpixel((width // 2, height // 2)) == (255, 0, 0)


@pytest.mark.asyncio
async def test_logo_from_file_path(temp_dir, logo_png):
    path = os.path.join(temp_dir, "logo.png")
    with open(path, "wb") as f:
        f.write(logo_png)
    png = await render_qr(QrRenderRequest(intent=INTENT, logo=path, logo_size=48, output=OutputFormat.PNG))
    img = Image.open(io.BytesIO(png)).convert("RGB")
    width, height = img.size
    assert img.getpixel((width // 2 + 20, height // 2 - 20)) == (255, 0, 0)


@pytest.mark.asyncio
async def test_remote_logo(logo_png):
    async def handler(request):
        return web.Response(body=logo_png, content_type="image/png")

    app = web.Application()
    app.router.add_get("/logo.png", handler)
    async with test_utils.TestServer(app) as server:
        uri = await render_qr(QrRenderRequest(intent=INTENT, logo=str(server.make_url("/logo.png"))))
    img = _decode_data_uri(uri).convert("RGB")
    assert img.getpixel((img.size[0] // 2, img.size[1] // 2)) == (255, 0, 0)


@pytest.mark.asyncio
@pytest.mark.parametrize("logo", [b"definitely not a png", "/nonexistent/dir/logo.png"])
async def test_broken_logo_falls_back_to_plain_qr(logo, caplog):
    plain = await render_qr(QrRenderRequest(intent=INTENT))
    with caplog.at_level(logging.WARNING, logger=qr_renderer.__name__):
        uri = await render_qr(QrRenderRequest(intent=INTENT, logo=logo))
    assert uri == plain
    _decode_data_uri(uri)
    assert any("降级" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_broken_logo_falls_back_for_raw_png():
    plain = await render_qr(QrRenderRequest(intent=INTENT, output=OutputFormat.PNG))
    png = await render_qr(QrRenderRequest(intent=INTENT, logo=b"junk", output=OutputFormat.PNG))
    assert png == plain


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [5, 1, -10, "huge"])
async def test_invalid_logo_size_raises(logo_png, size):
    with pytest.raises(ValidationError):
        await render_qr(QrRenderRequest(intent=INTENT, logo=logo_png, logo_size=size))


@pytest.mark.asyncio
async def test_logo_size_ignored_without_logo():
    uri = await render_qr(QrRenderRequest(intent=INTENT, logo_size=1))
    _decode_data_uri(uri)


@pytest.mark.asyncio
async def test_validation_error_propagates_unchanged():
    with pytest.raises(ValidationError):
        await render_qr(QrRenderRequest(intent=PaymentIntent(payee_upi="a@bank", payee_name="A", amount=-5)))


@pytest.mark.asyncio
async def test_empty_link_returns_none(monkeypatch):
    monkeypatch.setattr(qr_renderer, "build_link", lambda intent, now=None: "")
    assert await render_qr(QrRenderRequest(intent=INTENT)) is None


@pytest.mark.asyncio
async def test_custom_colors_applied():
    uri = await render_qr(QrRenderRequest(intent=INTENT, dark="#0000ff", light="#ffff00"))
    img = _decode_data_uri(uri).convert("RGB")
    assert img.getpixel((0, 0)) == (255, 255, 0)
    assert img.getpixel((16, 16)) == (0, 0, 255)


@pytest.mark.asyncio
async def test_upi_qr_accepts_original_options(logo_png):
    uri = await upi_qr(
        {
            "PayeeUPI": "a@bank",
            "PayeeName": "A",
            "Amount": 10,
            "logo": logo_png,
            "logoSize": 30,
            "color": {"dark": "#000000", "light": "#ffffff"},
        }
    )
    img = _decode_data_uri(uri).convert("RGB")
    assert img.getpixel((img.size[0] // 2, img.size[1] // 2)) == (255, 0, 0)


@pytest.mark.asyncio
async def test_upi_qr_svg_option():
    svg = await upi_qr({"PayeeUPI": "a@bank", "PayeeName": "A", "Amount": 10, "output": "svg"})
    assert "<svg" in svg


@pytest.mark.asyncio
async def test_output_given_as_plain_string():
    svg = await render_qr(QrRenderRequest(intent=INTENT, output="SVG"))
    assert "<svg" in svg
