from enum import Enum


class UpdateSource(str, Enum):
    """Откуда пришёл апдейт"""

    POLLING = "polling"
    WEBHOOK = "webhook"


class PollingErrorKind(str, Enum):
    TRANSPORT = "transport"
    API = "api"


class SkipReason(str, Enum):
    CLEAN_START = "clean_start"
    MALFORMED = "malformed"
    OUT_OF_ORDER = "out_of_order"
