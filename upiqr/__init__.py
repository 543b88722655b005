"""
UPI 深链与收款二维码生成

    from upiqr import upi_link, upi_qr

    link = upi_link({"PayeeUPI": "shop@bank", "PayeeName": "Shop", "Amount": 199})
    data_uri = await upi_qr({"PayeeUPI": "shop@bank", "PayeeName": "Shop", "Amount": 199, "logo": "logo.png"})
"""
from upiqr.errors import CompositeFailure, ValidationError
from upiqr.models.payment import GstBreakdown, OutputFormat, PaymentIntent, QrRenderRequest
from upiqr.utils.qr_renderer import upi_qr
from upiqr.utils.upi_link import upi_link

__all__ = [
    "CompositeFailure",
    "GstBreakdown",
    "OutputFormat",
    "PaymentIntent",
    "QrRenderRequest",
    "ValidationError",
    "upi_link",
    "upi_qr",
]
