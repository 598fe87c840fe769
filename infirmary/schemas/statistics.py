# =====================================================================
# ESQUEMAS DE ESTADÍSTICAS
# =====================================================================

from __future__ import annotations

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

# =========================================================
# ESQUEMAS DE SERIES Y DISTRIBUCIONES
# =========================================================

class GradeCount(BaseModel):
    """
    Pacientes estudiantes por semestre.

    Attributes:
        grade (str): Etiqueta del semestre/cohorte
        count (int): Número de pacientes
    """
    grade: str
    count: int


class DailyCount(BaseModel):
    """
    Tomas de muestra registradas en un día.

    Attributes:
        date (str): Día en formato YYYY-MM-DD
        count (int): Número de tomas (no pacientes distintos)
    """
    date: str
    count: int


class RecentPatient(BaseModel):
    """Proyección reducida (sin datos clínicos) de un paciente reciente."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    nombre: str
    apellido: str
    semestre: Optional[str] = None
    area: str
    carrera: str
    created_at: Optional[datetime] = None


# =========================================================
# ESQUEMA PRINCIPAL DE ESTADÍSTICAS
# =========================================================

class StatisticsSummary(BaseModel):
    """
    Resumen del panel de estadísticas.

    Attributes:
        totalPatients (int): Total de pacientes
        totalVitalSigns (int): Total de tomas de signos vitales
        activeUsers (int): Usuarios con activo = True
        patientsByGrade (List[GradeCount]): Estudiantes por semestre, orden ascendente
        patientsByDay (List[DailyCount]): Tomas por día en los últimos 30 días
        averageAge (float): Edad promedio (1 decimal)
        recentPatients (List[RecentPatient]): Últimos 4 pacientes creados
    """
    totalPatients: int
    totalVitalSigns: int
    activeUsers: int
    patientsByGrade: List[GradeCount]
    patientsByDay: List[DailyCount]
    averageAge: float
    recentPatients: List[RecentPatient]
