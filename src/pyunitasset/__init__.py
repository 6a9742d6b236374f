"""pyunitasset - Async IoT unit asset adapters driven by external data."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyunitasset")
except PackageNotFoundError:
    __version__ = "0+local"
from pyunitasset._cache import CacheEntry, EntryState, ExternalDataCache
from pyunitasset._transport import HttpTransport
from pyunitasset.assets import ComfortstatAsset, ServiceSpec, SunButtonAsset, UnitAsset
from pyunitasset.config import ComfortstatConfig, SunButtonConfig, SystemConfig
from pyunitasset.decision import ButtonState, button_state, desired_temperature
from pyunitasset.exceptions import (
    BadStatusError,
    InvalidServiceValueError,
    InvalidUrlError,
    NetworkError,
    ParseError,
    ReadOnlyServiceError,
    SendError,
    SourceError,
    UnitAssetConfigError,
    UnitAssetError,
    UnknownServiceError,
)
from pyunitasset.loop import AssetCapabilities, FeedbackLoop, TickOutcome
from pyunitasset.models import PriceInterval, PriceKey, PriceRecord, SignalA, SunKey, SunRecord, SunTimes
from pyunitasset.system import AssetSystem
from pyunitasset.tracker import ChangeTracker, SendState

__all__ = [
    "__version__",
    "AssetCapabilities",
    "AssetSystem",
    "BadStatusError",
    "ButtonState",
    "CacheEntry",
    "ChangeTracker",
    "ComfortstatAsset",
    "ComfortstatConfig",
    "EntryState",
    "ExternalDataCache",
    "FeedbackLoop",
    "HttpTransport",
    "InvalidServiceValueError",
    "InvalidUrlError",
    "NetworkError",
    "ParseError",
    "PriceInterval",
    "PriceKey",
    "PriceRecord",
    "ReadOnlyServiceError",
    "SendError",
    "SendState",
    "ServiceSpec",
    "SignalA",
    "SourceError",
    "SunButtonAsset",
    "SunButtonConfig",
    "SunKey",
    "SunRecord",
    "SunTimes",
    "SystemConfig",
    "TickOutcome",
    "UnitAsset",
    "UnitAssetConfigError",
    "UnitAssetError",
    "UnknownServiceError",
    "button_state",
    "desired_temperature",
]
