"""Unit asset adapters."""

from pyunitasset.assets.base import ServiceSpec, UnitAsset
from pyunitasset.assets.comfortstat import ComfortstatAsset
from pyunitasset.assets.sunbutton import SunButtonAsset

__all__ = [
    "ComfortstatAsset",
    "ServiceSpec",
    "SunButtonAsset",
    "UnitAsset",
]
