"""
配置文件读取和变量定义模块

配置来源仅为当前工作目录下的 upiqr.ini（可选），不读取环境变量。
margin/scale/logo 比例等渲染常量固定写在各自模块中，不作为配置项。
"""
import os
import configparser
import logging

logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.getcwd(), 'upiqr.ini')

# 读取配置文件
config = configparser.ConfigParser()

# 安全读取配置文件
if os.path.exists(CONFIG_PATH):
    config.read(CONFIG_PATH)
    logger.info(f"已加载配置文件: {CONFIG_PATH}")
else:
    logger.debug(f"配置文件 {CONFIG_PATH} 不存在，使用默认配置")

# 辅助函数：安全获取配置
def get_config(section, key, fallback=None):
    """安全获取配置值"""
    try:
        return config.get(section, key)
    except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
        return fallback

def get_config_float(section, key, fallback=None):
    """安全获取浮点配置值（空字符串视为未配置）"""
    raw = get_config(section, key)
    if raw is None or not str(raw).strip():
        return fallback
    try:
        return float(raw)
    except (ValueError, TypeError):
        logger.warning(f"{section}.{key} 配置无效，无法转换为数字: {raw}")
        return fallback

# 二维码颜色（调用方未指定时使用）
QR_DARK = get_config('QR', 'DARK', fallback='#000000') or '#000000'
QR_LIGHT = get_config('QR', 'LIGHT', fallback='#ffffff') or '#ffffff'

# 纠错等级：L/M/Q/H
_error_level = (get_config('QR', 'ERROR_LEVEL', fallback='M') or 'M').strip().upper()
if _error_level not in ('L', 'M', 'Q', 'H'):
    logger.warning(f"QR.ERROR_LEVEL 配置无效: {_error_level}，回退为 M")
    _error_level = 'M'
QR_ERROR_LEVEL = _error_level

# 远程 logo 拉取超时（秒），未配置则不设超时
LOGO_FETCH_TIMEOUT = get_config_float('LOGO', 'FETCH_TIMEOUT', fallback=None)

# 图形后端：auto/pillow/browser
_backend = (get_config('GRAPHICS', 'BACKEND', fallback='auto') or 'auto').strip().lower()
if _backend not in ('auto', 'pillow', 'browser'):
    logger.warning(f"GRAPHICS.BACKEND 配置无效: {_backend}，回退为 auto")
    _backend = 'auto'
GRAPHICS_BACKEND = _backend
