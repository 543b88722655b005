"""
支付意图与二维码渲染请求的数据模型
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union

from upiqr.config.settings import QR_DARK, QR_LIGHT
from upiqr.errors import ValidationError

Number = Union[int, float, Decimal]
LogoSource = Union[str, bytes]


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    """按顺序取第一个存在且非 None 的键（兼容 snake_case 与原始驼峰键名）"""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class GstBreakdown:
    total: Optional[Number] = None
    cgst: Optional[Number] = None
    sgst: Optional[Number] = None
    igst: Optional[Number] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GstBreakdown":
        return cls(
            total=_pick(data, "total", "Total"),
            cgst=_pick(data, "cgst", "CGST"),
            sgst=_pick(data, "sgst", "SGST"),
            igst=_pick(data, "igst", "IGST"),
        )


@dataclass(frozen=True)
class PaymentIntent:
    payee_upi: str
    payee_name: str
    amount: Union[Number, str]
    transaction_note: Optional[str] = None
    merchant_code: Optional[str] = None
    transaction_ref: Optional[str] = None
    transaction_id: Optional[str] = None
    invoice_no: Optional[str] = None
    invoice_date: bool = False
    qr_timestamp: bool = False
    qr_expire_days: Optional[Number] = None
    gst: Optional[GstBreakdown] = None
    gst_no: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PaymentIntent":
        """
        从字典构造 PaymentIntent。

        同时接受 snake_case 字段名与原始键名（PayeeUPI / PayeeName / Amount /
        TransactionNote / MerchantCode / TransactionRef / TransactionId / GST /
        invoiceNo / invoiceDate / QrExpireDays / QrTimestamp / GSTno）。
        """
        gst_raw = _pick(data, "gst", "GST")
        gst: Optional[GstBreakdown]
        if gst_raw is None or isinstance(gst_raw, GstBreakdown):
            gst = gst_raw
        else:
            gst = GstBreakdown.from_mapping(gst_raw)

        return cls(
            payee_upi=_pick(data, "payee_upi", "PayeeUPI"),
            payee_name=_pick(data, "payee_name", "PayeeName"),
            amount=_pick(data, "amount", "Amount"),
            transaction_note=_pick(data, "transaction_note", "TransactionNote"),
            merchant_code=_pick(data, "merchant_code", "MerchantCode"),
            transaction_ref=_pick(data, "transaction_ref", "TransactionRef"),
            transaction_id=_pick(data, "transaction_id", "TransactionId"),
            invoice_no=_pick(data, "invoice_no", "invoiceNo"),
            invoice_date=bool(_pick(data, "invoice_date", "invoiceDate")),
            qr_timestamp=bool(_pick(data, "qr_timestamp", "QrTimestamp")),
            qr_expire_days=_pick(data, "qr_expire_days", "QrExpireDays"),
            gst=gst,
            gst_no=_pick(data, "gst_no", "GSTno"),
        )


class OutputFormat(str, Enum):
    DATA_URI = "data_uri"  # base64 PNG data URI
    PNG = "png"            # 原始 PNG 字节
    SVG = "svg"            # SVG 文本（不支持 logo）

    @classmethod
    def parse(cls, value: Any) -> "OutputFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            allowed = ", ".join(f.value for f in cls)
            raise ValidationError(f'"output" 仅支持 {allowed}。收到: {value}') from e


@dataclass(frozen=True)
class QrRenderRequest:
    intent: PaymentIntent
    dark: str = QR_DARK
    light: str = QR_LIGHT
    logo: Optional[LogoSource] = None
    logo_size: Optional[Number] = None
    output: OutputFormat = OutputFormat.DATA_URI

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "QrRenderRequest":
        color = data.get("color") or {}
        dark = _pick(color, "dark") or data.get("dark") or QR_DARK
        light = _pick(color, "light") or data.get("light") or QR_LIGHT
        output = _pick(data, "output", "format") or OutputFormat.DATA_URI
        return cls(
            intent=PaymentIntent.from_mapping(data),
            dark=dark,
            light=light,
            logo=data.get("logo") or None,
            logo_size=_pick(data, "logo_size", "logoSize"),
            output=OutputFormat.parse(output),
        )
