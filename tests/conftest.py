import io
import shutil
import tempfile

import pytest
from PIL import Image

from upiqr.utils import graphics_backend


@pytest.fixture
def temp_dir():
    path = tempfile.mkdtemp(prefix="upiqr_test_")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def logo_png():
    """20x20 纯红色不透明 PNG"""
    img = Image.new("RGBA", (20, 20), (255, 0, 0, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def reset_graphics_backend():
    graphics_backend.set_graphics_backend(None)
    yield
    graphics_backend.set_graphics_backend(None)
