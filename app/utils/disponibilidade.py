from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config.settings import DB_TIMEZONE
from app.utils.database_utils import utcnow

# datetime.weekday(): 0=segunda..6=domingo
DIAS_SEMANA = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _parse_hhmm(value: Any) -> Optional[time]:
    """
    Aceita 'HH:MM' (00-23 / 00-59). Retorna None se inválido.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if len(value) != 5 or value[2] != ":":
        return None
    hh, mm = value.split(":")
    if not (hh.isdigit() and mm.isdigit()):
        return None
    h, m = int(hh), int(mm)
    if h > 23 or m > 59:
        return None
    return time(hour=h, minute=m)


def _to_local(now: datetime, tz_name: str | None) -> datetime:
    """
    Converte para o timezone de atendimento.
    Datetime naive é tratado como UTC (padrão das colunas do projeto).
    """
    if not tz_name:
        return now
    try:
        tz_local = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return now
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(tz_local)


def _contains(start: time, end: time, t: time) -> bool:
    # compara só horas e minutos: "18:00" vale até 18:00:59
    t_hm = (t.hour, t.minute)
    start_hm = (start.hour, start.minute)
    end_hm = (end.hour, end.minute)
    if end_hm >= start_hm:
        return start_hm <= t_hm <= end_hm
    # overnight (ex: 22:00 até 06:00)
    return t_hm >= start_hm or t_hm <= end_hm


def esta_dentro_do_horario(
    schedule: Any,
    *,
    now: datetime | None = None,
    timezone: str | None = DB_TIMEZONE,
) -> bool:
    """
    Avalia se o atendimento está disponível no momento informado.

    Formato esperado (configuração da instância):
      {"monday": {"enabled": true, "start": "08:00", "end": "18:00"}, ...}

    Dia ausente, desabilitado ou com horário inválido conta como indisponível.
    """
    if not isinstance(schedule, dict):
        return False

    local_dt = _to_local(now or utcnow(), timezone)
    day = schedule.get(DIAS_SEMANA[local_dt.weekday()])
    if not isinstance(day, dict) or not day.get("enabled"):
        return False

    start = _parse_hhmm(day.get("start"))
    end = _parse_hhmm(day.get("end"))
    if not start or not end:
        return False
    return _contains(start, end, local_dt.time())


def proximo_horario_disponivel(
    schedule: Any,
    *,
    now: datetime | None = None,
    timezone: str | None = DB_TIMEZONE,
) -> Optional[datetime]:
    """Próximo início de expediente nos próximos 7 dias (horário local), ou None."""
    if not isinstance(schedule, dict):
        return None

    local_dt = _to_local(now or utcnow(), timezone)
    for offset in range(7):
        candidate = local_dt + timedelta(days=offset)
        day = schedule.get(DIAS_SEMANA[candidate.weekday()])
        if not isinstance(day, dict) or not day.get("enabled"):
            continue
        start = _parse_hhmm(day.get("start"))
        if not start:
            continue
        if offset == 0 and (local_dt.hour, local_dt.minute) >= (start.hour, start.minute):
            continue
        return candidate.replace(hour=start.hour, minute=start.minute, second=0, microsecond=0)
    return None


def validar_schedule(schedule: Any) -> Optional[str]:
    """
    Valida um schedule (completo ou parcial) vindo da API.
    Retorna a mensagem de erro do primeiro dia inválido, ou None.
    """
    if not isinstance(schedule, dict):
        return "availability_schedule deve ser um objeto"
    for dia, day in schedule.items():
        if dia not in DIAS_SEMANA:
            return f"Dia inválido: {dia}"
        if not isinstance(day, dict) or not isinstance(day.get("enabled"), bool):
            return f"Campo 'enabled' inválido em '{dia}'"
        if not _parse_hhmm(day.get("start")) or not _parse_hhmm(day.get("end")):
            return f"Horário inválido em '{dia}' (use HH:MM)"
    return None
