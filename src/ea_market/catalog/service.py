from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.validators import parse_amount, require_non_empty
from ..core.constants import (
    DEFAULT_PRODUCT_VERSION,
    DELETE_OTP_DIGITS,
    DELETE_OTP_MAX_ATTEMPTS,
    DELETE_OTP_TTL_MINUTES,
)
from ..core.exceptions import NotFoundError, ValidationError
from .model import CATEGORIES, Product
from .repository import ProductRepository

logger = logging.getLogger(__name__)

FILTER_KINDS = ("platform", "asset_class", "strategy")


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class CatalogService:
    """Use case: storefront listing and admin product management."""

    def __init__(self, products: ProductRepository, *, clock: Callable[[], datetime] = now_utc):
        self._products = products
        self._clock = clock

    @staticmethod
    def apply_filters(products: Sequence[Product], filters: Optional[dict] = None) -> list[Product]:
        filters = filters or {}
        out = list(products)
        for kind in FILTER_KINDS:
            wanted = _clean(filters.get(kind))
            if wanted:
                out = [p for p in out if getattr(p, kind) == wanted]
        return out

    def list_storefront(self, filters: Optional[dict] = None) -> list[Product]:
        return self.apply_filters(self._products.list_all(active_only=True), filters)

    def list_admin(self, filters: Optional[dict] = None) -> list[Product]:
        return self.apply_filters(self._products.list_all(), filters)

    def get_product(self, product_id: str) -> Product:
        product = self._products.get_by_id(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_active_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if not product.is_active:
            raise NotFoundError("Product is not available")
        return product

    def _validate(self, form: dict, *, product_id: Optional[str] = None) -> dict:
        name = require_non_empty(form.get("name"), "Name")
        price_monthly = parse_amount(form.get("price_monthly"), "Monthly price")
        price_lifetime = parse_amount(form.get("price_lifetime"), "Lifetime price")
        price_quarterly = parse_amount(form.get("price_quarterly"), "Quarterly price", required=False)

        product_key = _clean(form.get("product_key"))
        if product_key:
            existing = self._products.get_by_key(product_key)
            if existing and existing.product_id != product_id:
                raise ValidationError("Product key is already used by another product")

        data = {
            "name": name,
            "product_key": product_key,
            "description": _clean(form.get("description")),
            "price_monthly": price_monthly,
            "price_quarterly": price_quarterly,
            "price_lifetime": price_lifetime,
            "image_url": _clean(form.get("image_url")),
            "file_url": _clean(form.get("file_url")),
            "version": _clean(form.get("version")) or DEFAULT_PRODUCT_VERSION,
            "is_active": bool(form.get("is_active")),
        }
        for kind in FILTER_KINDS:
            value = _clean(form.get(kind))
            if value and value not in CATEGORIES[kind]:
                raise ValidationError(f"Unknown {kind.replace('_', ' ')}: {value}")
            data[kind] = value
        return data

    def create_product(self, form: dict) -> str:
        data = self._validate(form)
        product_id = self._products.create(data=data)
        logger.info("Product created: %s (%s)", data["name"], product_id)
        return product_id

    def update_product(self, product_id: str, form: dict) -> None:
        self.get_product(product_id)
        data = self._validate(form, product_id=product_id)
        if not self._products.update(product_id=product_id, data=data):
            raise ValidationError("Failed to update product")
        logger.info("Product updated: %s", product_id)

    def issue_delete_code(self, *, product_id: str, admin_email: str) -> dict:
        """Create a one-time deletion code; returns the record to keep server side.

        The plain code is only written to the log.
        """
        product = self.get_product(product_id)
        code = f"{secrets.randbelow(10 ** DELETE_OTP_DIGITS):0{DELETE_OTP_DIGITS}d}"
        expires_at = self._clock() + timedelta(minutes=DELETE_OTP_TTL_MINUTES)
        logger.warning("Delete code for product %r requested by %s: %s", product.name, admin_email, code)
        return {
            "product_id": product_id,
            "code_hash": generate_password_hash(code),
            "expires_at": expires_at.isoformat(),
            "attempts": 0,
        }

    @staticmethod
    def delete_code_spent(record: Optional[dict]) -> bool:
        return bool(record) and record.get("attempts", 0) >= DELETE_OTP_MAX_ATTEMPTS

    def delete_with_code(self, *, product_id: str, code: str, record: Optional[dict]) -> None:
        """Delete the product when `code` matches `record`.

        Wrong codes are counted in record["attempts"]; the caller persists it.
        """
        code = (code or "").strip()
        if not record or record.get("product_id") != product_id:
            raise ValidationError("Request a deletion code first")
        if self.delete_code_spent(record):
            raise ValidationError("Too many incorrect attempts. Request a new deletion code")
        if self._clock() > datetime.fromisoformat(record["expires_at"]):
            raise ValidationError("Deletion code has expired")
        if not code or not check_password_hash(record["code_hash"], code):
            record["attempts"] = record.get("attempts", 0) + 1
            logger.warning("Wrong deletion code for product %s (attempt %d)", product_id, record["attempts"])
            if self.delete_code_spent(record):
                raise ValidationError("Too many incorrect attempts. Request a new deletion code")
            raise ValidationError("Deletion code is incorrect")

        if not self._products.delete_by_id(product_id):
            raise NotFoundError("Product not found")
        logger.info("Product deleted: %s", product_id)
