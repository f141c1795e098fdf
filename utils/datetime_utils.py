"""
Utilidades centralizadas para manejo de fechas y timestamps.
Todas las operaciones usan America/Argentina/Buenos_Aires como zona horaria de referencia.

Convención del sistema:
- Las fechas de formulario llegan como strings 'YYYY-MM-DD' (+ 'HH:MM' opcional)
  y se interpretan como **hora local del campo**.
- Lo que se envía a Baserow es ISO 8601 en UTC ('...Z').
- Baserow devuelve fechas 'YYYY-MM-DD' o ISO con zona; si llega un datetime
  **naive** se interpreta como hora local.
"""
import math
import re
from datetime import datetime, date, time, timedelta
from typing import Any, Optional, Tuple
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("America/Argentina/Buenos_Aires")
UTC_TZ = ZoneInfo("UTC")

SECONDS_PER_DAY = 86400

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def today_local(tz: ZoneInfo = LOCAL_TZ) -> date:
    """
    Retorna la fecha actual (date) en la zona horaria local.
    """
    return datetime.now(tz).date()


# ==================== PARSEO ====================

def parse_date_string(value: Any) -> Optional[date]:
    """
    Parsea estrictamente 'YYYY-MM-DD'. Cualquier otra cosa => None.
    """
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not DATE_RE.match(s):
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def parse_datetime(value: Any, tz: ZoneInfo = LOCAL_TZ) -> Optional[datetime]:
    """
    Parsea un string de fecha o fecha-hora ISO a datetime aware.

    - 'YYYY-MM-DD' => medianoche local
    - ISO naive => hora local
    - ISO con 'Z' u offset => se respeta
    """
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    d = parse_date_string(s)
    if d is not None:
        return datetime.combine(d, time.min, tzinfo=tz)
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def to_timestamp(value: Any, tz: ZoneInfo = LOCAL_TZ) -> Optional[float]:
    """Epoch en segundos o None si no parsea (para ordenar)."""
    dt = parse_datetime(value, tz)
    return dt.timestamp() if dt is not None else None


def to_utc_iso(value: Any, tz: ZoneInfo = LOCAL_TZ, truncate_seconds: bool = False) -> Optional[str]:
    """
    Normaliza un string de fecha/fecha-hora a ISO UTC ('YYYY-MM-DDTHH:MM:SSZ').
    Se usa para comparar fechas de DTO contra las del formulario.

    truncate_seconds: deja los segundos en 0, la precisión de los formularios
    de fecha + hora ('HH:MM').
    """
    dt = parse_datetime(value, tz)
    if dt is None:
        return None
    dt = dt.astimezone(UTC_TZ).replace(microsecond=0)
    if truncate_seconds:
        dt = dt.replace(second=0)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


# ==================== FORMULARIOS ====================

def combine_date_and_time_to_iso(
        date_value: Any,
        time_value: Any = None,
        tz: ZoneInfo = LOCAL_TZ,
) -> Optional[str]:
    """
    Combina fecha ('YYYY-MM-DD') + hora ('HH:MM', opcional) en un ISO 8601.

    - Fecha vacía o inválida => None
    - Hora vacía => 00:00 local
    - Hora inválida => None
    """
    d = parse_date_string(date_value)
    if d is None:
        return None

    t = time.min
    time_str = time_value.strip() if isinstance(time_value, str) else ""
    if time_str:
        m = TIME_RE.match(time_str)
        if not m:
            return None
        hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
        if hour > 23 or minute > 59 or second > 59:
            return None
        t = time(hour, minute, second)

    local_dt = datetime.combine(d, t, tzinfo=tz)
    return to_utc_iso(local_dt.isoformat(), tz)


def split_iso_to_date_and_time_local(value: Any, tz: ZoneInfo = LOCAL_TZ) -> Tuple[str, str]:
    """
    Inverso de combine_date_and_time_to_iso: ('YYYY-MM-DD', 'HH:MM') en hora local.
    Vacío o inválido => ('', '').
    """
    dt = parse_datetime(value, tz)
    if dt is None:
        return "", ""
    local = dt.astimezone(tz)
    return local.strftime("%Y-%m-%d"), local.strftime("%H:%M")


def add_days(date_value: str, days: int) -> Optional[str]:
    d = parse_date_string(date_value)
    if d is None:
        return None
    return (d + timedelta(days=days)).isoformat()


# ==================== DURACIONES ====================

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def days_to_duration_seconds(days: Optional[float]) -> Optional[int]:
    """
    Baserow guarda duraciones en segundos: segundos = round(días × 86400).
    """
    if days is None:
        return None
    return _round_half_up(days * SECONDS_PER_DAY)


def duration_seconds_to_days(seconds: Optional[float]) -> Optional[int]:
    """Inverso: redondea al día más cercano."""
    if seconds is None:
        return None
    return _round_half_up(seconds / SECONDS_PER_DAY)
