from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Product


class ProductRepository(Protocol):
    def get_by_id(self, product_id: str) -> Optional[Product]:
        raise NotImplementedError

    def get_by_key(self, product_key: str) -> Optional[Product]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[Product]:
        raise NotImplementedError

    def create(self, *, data: dict) -> str:
        raise NotImplementedError

    def update(self, *, product_id: str, data: dict) -> bool:
        raise NotImplementedError

    def delete_by_id(self, product_id: str) -> bool:
        raise NotImplementedError
