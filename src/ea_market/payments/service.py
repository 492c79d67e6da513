from __future__ import annotations

import io
import logging
from decimal import Decimal
from typing import Optional

import qrcode

from .model import PaymentSettings
from .repository import PaymentSettingsRepository

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def payment_qr_text(settings: PaymentSettings, *, amount: Decimal, reference: str = "") -> str:
    lines = [
        f"Bank: {settings.bank_name or '-'}",
        f"Account name: {settings.account_name or '-'}",
        f"Account number: {settings.account_number or '-'}",
        f"Amount: {Decimal(amount):.2f}",
    ]
    if reference:
        lines.append(f"Reference: {reference}")
    return "\n".join(lines)


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=8,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


class PaymentService:
    def __init__(self, settings: PaymentSettingsRepository):
        self._settings = settings

    def get_settings(self) -> PaymentSettings:
        return self._settings.get() or PaymentSettings()

    def update_settings(
        self,
        *,
        bank_name: Optional[str],
        account_name: Optional[str],
        account_number: Optional[str],
        qr_image_url: Optional[str],
    ) -> str:
        settings_id = self._settings.upsert(
            bank_name=_clean(bank_name),
            account_name=_clean(account_name),
            account_number=_clean(account_number),
            qr_image_url=_clean(qr_image_url),
        )
        logger.info("Payment settings updated")
        return settings_id

    def checkout_qr(self, *, amount: Decimal, reference: str = "") -> io.BytesIO:
        return render_qr_png(payment_qr_text(self.get_settings(), amount=amount, reference=reference))
