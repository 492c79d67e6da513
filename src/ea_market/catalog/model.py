from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from ..core.enums import PlanType

CATEGORIES = {
    "platform": {
        "mt4": "MT4",
        "mt5": "MT5",
    },
    "asset_class": {
        "gold": "Gold (XAUUSD)",
        "silver": "Silver",
        "currency": "Forex Pairs",
        "crypto": "Crypto",
        "indices": "Indices",
        "commodities": "Commodities",
    },
    "strategy": {
        "scalping": "Scalping",
        "trend_following": "Trend Following",
        "grid": "Grid",
        "martingale": "Martingale",
        "hedging": "Hedging",
        "swing_trading": "Swing",
        "day_trading": "Day Trading",
        "news_trading": "News",
        "arbitrage": "Arbitrage",
    },
}


def category_label(kind: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return CATEGORIES.get(kind, {}).get(value, value)


@dataclass(frozen=True)
class Product:
    """An EA sold in the storefront."""

    product_id: str
    name: str
    product_key: Optional[str]
    description: Optional[str]
    price_monthly: Decimal
    price_quarterly: Optional[Decimal]
    price_lifetime: Decimal
    image_url: Optional[str] = None
    file_url: Optional[str] = None
    version: str = "1.0"
    platform: Optional[str] = None
    asset_class: Optional[str] = None
    strategy: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    def price_for(self, plan_type: Union[PlanType, str]) -> Optional[Decimal]:
        plan = PlanType(plan_type)
        if plan == PlanType.MONTHLY:
            return self.price_monthly
        if plan == PlanType.QUARTERLY:
            return self.price_quarterly
        return self.price_lifetime

    @property
    def category(self) -> str:
        return self.asset_class or "EA"
