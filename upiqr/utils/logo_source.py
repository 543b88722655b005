"""
logo 来源读取：bytes / data URI / http(s) URL / 本地文件
"""
import asyncio
import base64
import logging
from pathlib import Path
from typing import Optional, Union

import aiohttp

logger = logging.getLogger(__name__)


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def decode_data_uri(source: str) -> bytes:
    header, sep, payload = source.partition(",")
    if not sep:
        raise ValueError("data URI 缺少 ',' 分隔符")
    if ";base64" not in header.lower():
        raise ValueError(f"仅支持 base64 编码的 data URI: {header[:64]}")
    return base64.b64decode(payload, validate=True)


async def fetch_remote(url: str, *, timeout_seconds: Optional[float] = None) -> bytes:
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(url) as resp:
            if resp.status != 200:
                text = await resp.text(errors="replace")
                raise RuntimeError(f"logo 下载失败 HTTP {resp.status}: {text[:200]}")
            return await resp.read()


async def load_logo_bytes(
    source: Union[str, bytes, bytearray],
    *,
    timeout_seconds: Optional[float] = None,
) -> bytes:
    """
    读取 logo 原始字节。

    只尝试一次，不重试；失败时直接抛出，由合成步骤决定降级。
    """
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)

    source = str(source).strip()
    if not source:
        raise ValueError("logo 来源不能为空")

    if source.lower().startswith("data:"):
        return decode_data_uri(source)

    if is_remote(source):
        logger.debug(f"下载远程 logo: {source[:80]}")
        return await fetch_remote(source, timeout_seconds=timeout_seconds)

    return await asyncio.to_thread(Path(source).expanduser().read_bytes)
