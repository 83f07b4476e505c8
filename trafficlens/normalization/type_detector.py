import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional


class TypeDetector:
    NULL_VARIANTS = {"null", "none", "nil", "nan", "n/a", ""}

    NUMERIC_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')

    LATITUDE_BOUNDS = (-90.0, 90.0)
    LONGITUDE_BOUNDS = (-180.0, 180.0)

    # Epoch magnitudes: seconds fall in [1e9, 1e11), milliseconds in [1e11, 1e14)
    EPOCH_SECONDS_MIN = 1e9
    EPOCH_MILLIS_MIN = 1e11
    EPOCH_MILLIS_MAX = 1e14

    DATETIME_FORMATS = [
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M",
        "%Y-%m-%d",
        "%Y/%m/%d %H:%M:%S",
        "%Y/%m/%d %H:%M",
        "%Y/%m/%d",
        "%m/%d/%Y %H:%M:%S",
        "%m/%d/%Y %H:%M",
        "%m/%d/%Y %I:%M:%S %p",
        "%m/%d/%Y %I:%M %p",
        "%m/%d/%Y",
        "%d/%m/%Y %H:%M:%S",
        "%d/%m/%Y %H:%M",
        "%d/%m/%Y",
        "%d-%m-%Y",
        "%m-%d-%Y",
        "%d.%m.%Y %H:%M",
        "%d.%m.%Y",
        "%b %d, %Y",
        "%b %d %Y %H:%M:%S",
        "%d %b %Y",
        "%d %B %Y",
        "%B %d, %Y",
        "%a %b %d %Y %H:%M:%S",
    ]

    @classmethod
    def detect(cls, value: Any) -> str:
        if value is None:
            return "null"

        if isinstance(value, bool):
            return "bool"

        if isinstance(value, int):
            return "int"

        if isinstance(value, float):
            return "float" if math.isfinite(value) else "null"

        if isinstance(value, (datetime, date)):
            return "datetime"

        if isinstance(value, list):
            return "array"

        if isinstance(value, dict):
            return "object"

        if isinstance(value, str):
            value_stripped = value.strip()

            if value_stripped.lower() in cls.NULL_VARIANTS:
                return "null"

            if cls.NUMERIC_PATTERN.match(value_stripped):
                return "float" if any(c in value_stripped for c in ".eE") else "int"

            if cls._parse_datetime_text(value_stripped) is not None:
                return "datetime"

            return "str"

        return "str"

    @classmethod
    def is_null(cls, value: Any) -> bool:
        return cls.detect(value) == "null"

    @classmethod
    def to_number(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, (int, float)):
            number = float(value)
            return number if math.isfinite(number) else None

        if isinstance(value, str):
            value = value.strip()
            if not cls.NUMERIC_PATTERN.match(value):
                return None
            try:
                number = float(value)
            except (ValueError, OverflowError):
                return None
            return number if math.isfinite(number) else None

        return None

    @classmethod
    def to_latitude(cls, value: Any) -> Optional[float]:
        return cls._within(cls.to_number(value), cls.LATITUDE_BOUNDS)

    @classmethod
    def to_longitude(cls, value: Any) -> Optional[float]:
        return cls._within(cls.to_number(value), cls.LONGITUDE_BOUNDS)

    @classmethod
    def to_datetime(cls, value: Any) -> Optional[datetime]:
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, datetime):
            return value

        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        if isinstance(value, (int, float)):
            return cls._from_epoch(float(value))

        if isinstance(value, str):
            value = value.strip()
            if value.lower() in cls.NULL_VARIANTS:
                return None
            if cls.NUMERIC_PATTERN.match(value):
                number = cls.to_number(value)
                return cls._from_epoch(number) if number is not None else None
            return cls._parse_datetime_text(value)

        return None

    @classmethod
    def to_text(cls, value: Any) -> Optional[str]:
        if value is None:
            return None

        if isinstance(value, float):
            if not math.isfinite(value):
                return None
            # 12.0 comes back from CSV columns with gaps; keep the key as "12"
            if value.is_integer():
                return str(int(value))
            return repr(value)

        text = str(value).strip()
        if text.lower() in cls.NULL_VARIANTS:
            return None
        return text

    @classmethod
    def _within(cls, number: Optional[float], bounds: tuple[float, float]) -> Optional[float]:
        if number is None:
            return None
        low, high = bounds
        return number if low <= number <= high else None

    @classmethod
    def _from_epoch(cls, number: float) -> Optional[datetime]:
        if not math.isfinite(number):
            return None

        magnitude = abs(number)
        if cls.EPOCH_SECONDS_MIN <= magnitude < cls.EPOCH_MILLIS_MIN:
            seconds = number
        elif cls.EPOCH_MILLIS_MIN <= magnitude < cls.EPOCH_MILLIS_MAX:
            seconds = number / 1000.0
        else:
            return None

        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    @classmethod
    def _parse_datetime_text(cls, value: str) -> Optional[datetime]:
        if not value or cls.NUMERIC_PATTERN.match(value):
            return None

        iso_value = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        try:
            return datetime.fromisoformat(iso_value)
        except ValueError:
            pass

        for fmt in cls.DATETIME_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
            except ValueError:
                continue
            if fmt.endswith("Z"):
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
        return None
