"""
Agregación de estadísticas del panel a partir de filas ya leídas.

Todas las funciones son puras: reciben las colecciones y el instante
``now`` inyectado, sin tocar la base de datos ni el reloj del sistema.
"""
from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Sequence

from infirmary.models.base import AREA_STUDENT
from infirmary.schemas.statistics import DailyCount, GradeCount, RecentPatient, StatisticsSummary

DAILY_WINDOW_DAYS = 30
RECENT_PATIENTS_LIMIT = 4


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _local_day(timestamp: datetime, now: datetime) -> date:
    """Día calendario de la toma visto desde la zona horaria de ``now``."""
    if timestamp.tzinfo is not None and now.tzinfo is not None:
        timestamp = timestamp.astimezone(now.tzinfo)
    return timestamp.date()


def count_active_users(users: Iterable[Any]) -> int:
    return sum(1 for user in users if getattr(user, "activo", False))


def cohort_distribution(patients: Iterable[Any]) -> List[GradeCount]:
    """Estudiantes agrupados por semestre, orden ascendente por etiqueta."""
    counts = Counter(
        p.semestre
        for p in patients
        if p.area == AREA_STUDENT and p.semestre is not None
    )
    return [GradeCount(grade=label, count=counts[label]) for label in sorted(counts)]


def daily_sample_series(
    vital_signs: Iterable[Any],
    now: datetime,
    days: int = DAILY_WINDOW_DAYS,
) -> List[DailyCount]:
    """
    Tomas por día para hoy y los ``days - 1`` días anteriores.

    Todos los días empiezan en cero; cada toma suma uno a su día
    (se cuentan muestras, no pacientes distintos). Las tomas fuera de
    la ventana se ignoran.
    """
    today = now.date()
    buckets: Dict[date, int] = {
        today - timedelta(days=offset): 0 for offset in range(days - 1, -1, -1)
    }

    for vital_sign in vital_signs:
        timestamp = getattr(vital_sign, "timestamp", None)
        if timestamp is None:
            continue
        day = _local_day(timestamp, now)
        if day in buckets:
            buckets[day] += 1

    return [DailyCount(date=day.isoformat(), count=buckets[day]) for day in sorted(buckets)]


def age_on(birth_date: date | datetime, today: date) -> int:
    """Edad en años cumplidos a ``today``."""
    birth_date = _as_date(birth_date)
    age = today.year - birth_date.year

    # Ajustar si el cumpleaños aún no ha pasado este año
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1

    return age


def average_age(patients: Sequence[Any], today: date) -> float:
    if not patients:
        return 0
    total = sum(age_on(p.fecha_nacimiento, today) for p in patients)
    return round(total / len(patients), 1)


def recent_patients(patients: Iterable[Any], limit: int = RECENT_PATIENTS_LIMIT) -> List[RecentPatient]:
    """Los últimos ``limit`` pacientes creados, del más nuevo al más antiguo."""
    ordered = sorted(
        (p for p in patients if p.created_at is not None),
        key=lambda p: (p.created_at, p.id),
        reverse=True,
    )
    return [RecentPatient.model_validate(p) for p in ordered[:limit]]


def aggregate(
    patients: Iterable[Any],
    vital_signs: Iterable[Any],
    now: datetime,
    users: Iterable[Any] = (),
) -> StatisticsSummary:
    """Combina todas las métricas sobre la misma foto de los datos."""
    patients = list(patients)
    vital_signs = list(vital_signs)

    return StatisticsSummary(
        totalPatients=len(patients),
        totalVitalSigns=len(vital_signs),
        activeUsers=count_active_users(users),
        patientsByGrade=cohort_distribution(patients),
        patientsByDay=daily_sample_series(vital_signs, now),
        averageAge=average_age(patients, now.date()),
        recentPatients=recent_patients(patients),
    )
