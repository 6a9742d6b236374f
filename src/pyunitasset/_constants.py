"""Internal constants shared across the library."""

USER_AGENT = "pyunitasset/1 (+aiohttp)"

# elprisetjustnu.se publishes one JSON document per day and price region.
PRICE_URL_TEMPLATE = "https://www.elprisetjustnu.se/api/v1/prices/{year:04d}/{month:02d}-{day:02d}_{region}.json"
PRICE_REGIONS: frozenset[str] = frozenset({"SE1", "SE2", "SE3", "SE4"})

SUN_URL_TEMPLATE = "https://api.sunrisesunset.io/json"

#: The price API asks clients to fetch no more than once per hour.
PRICE_FETCH_PERIOD_S: float = 3600.0

DEFAULT_SAMPLING_PERIOD_S: float = 15.0
DEFAULT_HTTP_TIMEOUT_S: float = 10.0
DEFAULT_TIME_ZONE = "Europe/Stockholm"

SIGNAL_VERSION = "SignalA_v1.0"

UNIT_CELSIUS = "Celsius"
UNIT_SEK = "SEK"
UNIT_DEGREES = "Degrees"
UNIT_BOOL = "bool"
