"""
UPI 深链（upi://pay?...）生成

- 先校验，再拼接；校验不通过直接抛 ValidationError，不会产出半成品链接
- 每个参数值独立做百分号编码（与 encodeURIComponent 字符集一致）
- 时间戳使用本地时区 + 数字偏移（YYYY-MM-DDTHH:MM:SS±HH:MM）
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from upiqr.errors import ValidationError
from upiqr.models.payment import GstBreakdown, PaymentIntent

logger = logging.getLogger(__name__)

CURRENCY = "INR"
UPI_PAY_PREFIX = "upi://pay?"

# encodeURIComponent 不编码的字符：A-Z a-z 0-9 - _ . ! ~ * ' ( )
_URI_COMPONENT_SAFE = "!~*'()"


def encode_component(value: Any) -> str:
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def as_number(value: Any) -> Optional[Decimal]:
    """
    尝试把值解释为有限数值；不是数值（含 bool、NaN、无穷大）时返回 None。
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, Decimal)):
        d = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        d = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return d if d.is_finite() else None


def format_number(value: Any) -> str:
    """按 JS 数字转字符串的习惯输出：整数值不带小数部分，字符串原样保留"""
    if value is None:
        return "undefined"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_local_iso(moment: datetime) -> str:
    """本地时区 ISO-8601，秒级精度，带 ±HH:MM 偏移"""
    return moment.astimezone().isoformat(timespec="seconds")


def format_expiry(now: datetime, days: Any) -> str:
    """now + days 天后的本地时间戳；超出 datetime 可表示范围时视为参数非法"""
    try:
        return format_local_iso(now + timedelta(days=float(as_number(days))))
    except OverflowError as e:
        raise ValidationError(f'"QrExpireDays" 超出可表示的日期范围。收到: {days}') from e


def format_gst_breakdown(gst: GstBreakdown) -> str:
    return (
        f"GST:{format_number(gst.total)}"
        f"|CGST:{format_number(gst.cgst)}"
        f"|SGST:{format_number(gst.sgst)}"
        f"|IGST:{format_number(gst.igst)}"
    )


def validate_intent(intent: PaymentIntent) -> None:
    amount = intent.amount
    if not intent.payee_upi or not intent.payee_name or not amount:
        raise ValidationError(
            '"PayeeUPI", "PayeeName", "Amount > 0" 为必填项。'
            f"收到 --> PayeeUPI: {intent.payee_upi} | PayeeName: {intent.payee_name} | Amount: {amount}"
        )

    amount_value = as_number(amount)
    if amount_value is None or amount_value <= 0:
        raise ValidationError(f'"Amount" 必须是大于 0 的数字。收到: {amount}')

    if intent.gst is not None:
        for label, value in (
            ("Total", intent.gst.total),
            ("CGST", intent.gst.cgst),
            ("SGST", intent.gst.sgst),
            ("IGST", intent.gst.igst),
        ):
            # 未提供（或为 0）的分项直接跳过
            if value is None or (not isinstance(value, bool) and not value):
                continue
            number = as_number(value)
            if number is None or number < 0:
                raise ValidationError(
                    f'"Total/CGST/SGST/IGST" 必须是 >= 0 的数字。收到 {label}: {value}'
                )

    if intent.qr_expire_days is not None:
        days = as_number(intent.qr_expire_days)
        if days is None or days <= 0:
            raise ValidationError(
                f'"QrExpireDays" 必须是大于 0 的数字（未来过期）。收到: {intent.qr_expire_days}'
            )


def build_link(intent: PaymentIntent, *, now: Optional[datetime] = None) -> str:
    """
    校验 PaymentIntent 并拼接 UPI 深链。

    参数顺序固定：pa, pn, am, cu, tn, mc, tr, tid, invoiceNo, gstBrkUp,
    invoiceDate, QRts, QRexpire, gstIn。

    gstBrkUp 只要 GST 记录存在就输出，缺失的分项写作字面量 "undefined"，
    下游 UPI 应用可能依赖该字段的存在。
    """
    validate_intent(intent)

    if now is None:
        now = datetime.now(timezone.utc)

    expire_at = None
    if intent.qr_expire_days is not None:
        expire_at = format_expiry(now, intent.qr_expire_days)

    params: List[Tuple[str, Any]] = [
        ("pa", intent.payee_upi),
        ("pn", intent.payee_name),
        ("am", format_number(intent.amount)),
        ("cu", CURRENCY),
    ]

    if intent.transaction_note:
        params.append(("tn", intent.transaction_note))
    if intent.merchant_code:
        params.append(("mc", intent.merchant_code))
    if intent.transaction_ref:
        params.append(("tr", intent.transaction_ref))
    if intent.transaction_id:
        params.append(("tid", intent.transaction_id))
    if intent.invoice_no:
        params.append(("invoiceNo", intent.invoice_no))
    if intent.gst is not None:
        params.append(("gstBrkUp", format_gst_breakdown(intent.gst)))

    if intent.invoice_date:
        params.append(("invoiceDate", format_local_iso(now)))
    if intent.qr_timestamp:
        params.append(("QRts", format_local_iso(now)))
    if expire_at is not None:
        params.append(("QRexpire", expire_at))

    if intent.gst_no:
        params.append(("gstIn", intent.gst_no))

    link = UPI_PAY_PREFIX + "&".join(f"{key}={encode_component(value)}" for key, value in params)
    logger.debug(f"已生成 UPI 链接，参数数量: {len(params)}")
    return link


def upi_link(options: Union[PaymentIntent, Mapping[str, Any]], *, now: Optional[datetime] = None) -> str:
    """同步生成 UPI 链接；options 可为 PaymentIntent 或字典"""
    intent = options if isinstance(options, PaymentIntent) else PaymentIntent.from_mapping(options)
    return build_link(intent, now=now)
