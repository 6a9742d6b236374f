"""Data models for external sources and signal forms."""

from pyunitasset.models._base import UnitAssetBaseModel
from pyunitasset.models.price import PriceInterval, PriceKey, PriceRecord
from pyunitasset.models.signal import SignalA
from pyunitasset.models.sun import SunKey, SunRecord, SunTimes

__all__ = [
    "PriceInterval",
    "PriceKey",
    "PriceRecord",
    "SignalA",
    "SunKey",
    "SunRecord",
    "SunTimes",
    "UnitAssetBaseModel",
]
