"""
Exchange shell: custody, migration venue, settings
"""

from .custody import AuthorityCapability, CustodyError, CustodyGateway, InMemoryCustody
from .migration import InMemoryVenue, MarketRecord, MigrationVenue
from .settings import ExchangeSettings, load_settings, settings_from_mapping
from .exchange import BondingCurveExchange, LiquidityReceipt, MigrationReceipt, TradeReceipt

__all__ = [
    "AuthorityCapability",
    "CustodyError",
    "CustodyGateway",
    "InMemoryCustody",
    "InMemoryVenue",
    "MarketRecord",
    "MigrationVenue",
    "ExchangeSettings",
    "load_settings",
    "settings_from_mapping",
    "BondingCurveExchange",
    "LiquidityReceipt",
    "MigrationReceipt",
    "TradeReceipt",
]
