"""
fixtures compartidas.

FakeRepository imita la interfaz de RecordRepository en memoria, de modo
que el servicio y la api se prueban sin postgres.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import DBAPIError

from infirmary.config import settings
from infirmary.deps import get_record_service
from infirmary.exceptions import Conflict, NotFound
from infirmary.security import create_access_token, hash_password, new_uuid
from infirmary.services.permission_service import Actor
from infirmary.services.record_service import RecordService

FIXED_NOW = datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc)

PASSWORD = "secreto123"
# bcrypt es lento a propósito: un único hash para todas las cuentas
PASSWORD_HASH = hash_password(PASSWORD)

ADMIN_ID = 1
OTHER_ADMIN_ID = 2
NURSE_ID = 3
RECEPTIONIST_ID = 4
INACTIVE_ID = 5

ADMIN_ROLE_ID = 1
NURSE_ROLE_ID = 2
RECEPTIONIST_ROLE_ID = 3


class FakeRepository:
    """
    repositorio en memoria con las mismas operaciones que RecordRepository.

    ``writes`` cuenta las mutaciones para comprobar que un error en
    autorización o validación no escribe nada.
    """

    def __init__(self):
        self.roles = {}
        self.users = {}
        self.patients = {}
        self.vital_signs = {}
        self.writes = 0
        self._next_id = {"role": 1, "user": 1, "patient": 1}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def _new_id(self, table):
        value = self._next_id[table]
        self._next_id[table] += 1
        return value

    # -------------------- roles --------------------

    def add_role(self, nombre, descripcion=None):
        role = SimpleNamespace(id=self._new_id("role"), nombre=nombre, descripcion=descripcion)
        self.roles[role.id] = role
        return role

    async def list_roles(self):
        return [self.roles[key] for key in sorted(self.roles)]

    async def get_role(self, role_id):
        return self.roles.get(role_id)

    # -------------------- usuarios --------------------

    def _user_view(self, user):
        user.role = self.roles.get(user.role_id)
        return user

    async def list_users(self):
        users = sorted(self.users.values(), key=lambda u: u.created_at, reverse=True)
        return [self._user_view(u) for u in users]

    async def get_user(self, user_id):
        user = self.users.get(user_id)
        return self._user_view(user) if user is not None else None

    async def get_user_by_email(self, email):
        for user in self.users.values():
            if user.email == email:
                return self._user_view(user)
        return None

    async def create_user(self, data):
        if any(u.email == data["email"] for u in self.users.values()):
            raise Conflict("email")
        now = self._tick()
        user = SimpleNamespace(
            id=self._new_id("user"),
            activo=True,
            ultimavez=None,
            imagen_url=None,
            created_at=now,
            updated_at=now,
        )
        for field, value in data.items():
            setattr(user, field, value)
        self.users[user.id] = user
        self.writes += 1
        return self._user_view(user)

    async def update_user(self, user_id, changes):
        user = self.users.get(user_id)
        if user is None:
            raise NotFound("Usuario no encontrado")
        email = changes.get("email")
        if email and any(u.email == email and u.id != user_id for u in self.users.values()):
            raise Conflict("email")
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = self._tick()
        self.writes += 1
        return self._user_view(user)

    async def delete_user(self, user_id):
        if self.users.pop(user_id, None) is None:
            raise NotFound("Usuario no encontrado")
        for patient in self.patients.values():
            if patient.creado_por_user_id == user_id:
                patient.creado_por_user_id = None
        self.writes += 1

    async def touch_last_seen(self, user_id, when):
        await self.update_user(user_id, {"ultimavez": when})

    # -------------------- pacientes --------------------

    def _patient_view(self, patient):
        patient.creado_por = self.users.get(patient.creado_por_user_id)
        patient.signos_vitales = sorted(
            (v for v in self.vital_signs.values() if v.patient_id == patient.id),
            key=lambda v: v.timestamp,
            reverse=True,
        )
        return patient

    async def list_patients(self, search=None, area=None):
        patients = list(self.patients.values())
        if search:
            lowered = search.lower()
            patients = [
                p for p in patients
                if search in p.cedula or lowered in p.nombre.lower() or lowered in p.apellido.lower()
            ]
        if area:
            patients = [p for p in patients if p.area == area]
        patients.sort(key=lambda p: p.created_at, reverse=True)
        listed = []
        for patient in patients:
            patient = self._patient_view(patient)
            patient.signos_vitales = patient.signos_vitales[:1]
            listed.append(patient)
        return listed

    async def get_patient(self, patient_id):
        patient = self.patients.get(patient_id)
        return self._patient_view(patient) if patient is not None else None

    async def create_patient(self, data):
        if any(p.cedula == data["cedula"] for p in self.patients.values()):
            raise Conflict("cedula")
        now = self._tick()
        patient = SimpleNamespace(
            id=self._new_id("patient"),
            semestre=None,
            alergias=None,
            medicamentos=None,
            contacto_emergencia=None,
            telefono_emergencia=None,
            creado_por_user_id=None,
            created_at=now,
            updated_at=now,
        )
        for field, value in data.items():
            setattr(patient, field, value)
        self.patients[patient.id] = patient
        self.writes += 1
        return self._patient_view(patient)

    async def update_patient(self, patient_id, changes):
        patient = self.patients.get(patient_id)
        if patient is None:
            raise NotFound("Paciente no encontrado")
        cedula = changes.get("cedula")
        if cedula and any(p.cedula == cedula and p.id != patient_id for p in self.patients.values()):
            raise Conflict("cedula")
        for field, value in changes.items():
            setattr(patient, field, value)
        patient.updated_at = self._tick()
        self.writes += 1
        return self._patient_view(patient)

    async def delete_patient(self, patient_id):
        if self.patients.pop(patient_id, None) is None:
            raise NotFound("Paciente no encontrado")
        self.vital_signs = {
            key: v for key, v in self.vital_signs.items() if v.patient_id != patient_id
        }
        self.writes += 1

    async def list_all_patients(self):
        return list(self.patients.values())

    # -------------------- signos vitales --------------------

    def _check_uuid(self, vital_sign_id):
        # postgres rechaza un texto que no es UUID antes de buscar la fila
        try:
            uuid.UUID(str(vital_sign_id))
        except ValueError as exc:
            raise DBAPIError("SELECT vital_sign", {"id": vital_sign_id}, exc) from exc

    async def list_vital_signs(self, patient_id):
        return sorted(
            (v for v in self.vital_signs.values() if v.patient_id == patient_id),
            key=lambda v: v.timestamp,
            reverse=True,
        )

    async def get_vital_sign(self, vital_sign_id):
        self._check_uuid(vital_sign_id)
        return self.vital_signs.get(vital_sign_id)

    async def create_vital_sign(self, data):
        now = self._tick()
        vital_sign = SimpleNamespace(
            id=new_uuid(),
            patient_id=None,
            oxygen_saturation=None,
            systolic_pressure=None,
            diastolic_pressure=None,
            notes=None,
            timestamp=now,
            created_at=now,
        )
        for field, value in data.items():
            setattr(vital_sign, field, value)
        self.vital_signs[vital_sign.id] = vital_sign
        self.writes += 1
        return vital_sign

    async def update_vital_sign(self, vital_sign_id, changes):
        self._check_uuid(vital_sign_id)
        vital_sign = self.vital_signs.get(vital_sign_id)
        if vital_sign is None:
            raise NotFound("Signo vital no encontrado")
        for field, value in changes.items():
            setattr(vital_sign, field, value)
        self.writes += 1
        return vital_sign

    async def delete_vital_sign(self, vital_sign_id):
        self._check_uuid(vital_sign_id)
        if self.vital_signs.pop(vital_sign_id, None) is None:
            raise NotFound("Signo vital no encontrado")
        self.writes += 1

    async def list_all_vital_signs(self):
        return list(self.vital_signs.values())


def seed(repo):
    """roles, cinco cuentas y un paciente estudiante con una toma."""
    repo.add_role("Administrador", "Acceso completo al sistema")
    repo.add_role("Enfermero", "Gestión de pacientes y signos vitales")
    repo.add_role("Recepcionista", "Sólo su perfil")

    accounts = [
        ("Admin", "Sistema", "admin@escuela.edu", ADMIN_ROLE_ID, True),
        ("Otra", "Admin", "admin2@escuela.edu", ADMIN_ROLE_ID, True),
        ("Enfermero", "Principal", "enfermero@escuela.edu", NURSE_ROLE_ID, True),
        ("Recep", "Cion", "recepcion@escuela.edu", RECEPTIONIST_ROLE_ID, True),
        ("Inactivo", "Usuario", "inactivo@escuela.edu", NURSE_ROLE_ID, False),
    ]
    for nombre, apellido, email, role_id, activo in accounts:
        user = SimpleNamespace(
            id=repo._new_id("user"),
            nombre=nombre,
            apellido=apellido,
            email=email,
            password_hash=PASSWORD_HASH,
            role_id=role_id,
            activo=activo,
            ultimavez=None,
            imagen_url=None,
            created_at=repo._tick(),
            updated_at=None,
        )
        repo.users[user.id] = user

    now = repo._tick()
    patient = SimpleNamespace(
        id=repo._new_id("patient"),
        nombre="María",
        apellido="González",
        fecha_nacimiento=date(2005, 5, 15),
        genero="femenino",
        area="estudiante",
        carrera="Ingeniería de Sistemas",
        semestre="1er semestre",
        cedula="28457689",
        alergias=None,
        medicamentos=None,
        contacto_emergencia=None,
        telefono_emergencia=None,
        creado_por_user_id=NURSE_ID,
        created_at=now,
        updated_at=now,
    )
    repo.patients[patient.id] = patient

    vital_sign = SimpleNamespace(
        id="6f1c2d3e-0000-4000-8000-000000000001",
        patient_id=patient.id,
        temperature=36.8,
        oxygen_saturation=97.0,
        heart_rate=72,
        systolic_pressure=120,
        diastolic_pressure=80,
        notes=None,
        timestamp=FIXED_NOW - timedelta(days=1),
        created_at=FIXED_NOW - timedelta(days=1),
    )
    repo.vital_signs[vital_sign.id] = vital_sign
    return repo


ADMIN = Actor(id=ADMIN_ID, role="Administrador", email="admin@escuela.edu")
OTHER_ADMIN = Actor(id=OTHER_ADMIN_ID, role="Administrador", email="admin2@escuela.edu")
NURSE = Actor(id=NURSE_ID, role="Enfermero", email="enfermero@escuela.edu")
RECEPTIONIST = Actor(id=RECEPTIONIST_ID, role="Recepcionista", email="recepcion@escuela.edu")

SEEDED_PATIENT_ID = 1
SEEDED_VITAL_SIGN_ID = "6f1c2d3e-0000-4000-8000-000000000001"


@pytest.fixture
def repo():
    return seed(FakeRepository())


@pytest.fixture
def service(repo):
    return RecordService(repo, clock=lambda: FIXED_NOW)


def auth_header(actor):
    token = create_access_token(sub=str(actor.id), role=actor.role, email=actor.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(repo, monkeypatch):
    """
    cliente de pruebas con el servicio apuntando al repositorio en memoria.
    """
    from main import app

    monkeypatch.setattr(settings, "login_rate_limit", 1000)
    app.dependency_overrides[get_record_service] = lambda: RecordService(repo, clock=lambda: FIXED_NOW)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
