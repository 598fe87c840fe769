"""
tests for the access-controlled record service.

every operation runs authorize -> validate -> persist; failures in the
first two stages must leave the repository untouched. coroutines are
driven with asyncio.run against the in-memory repository.
"""

import asyncio
from datetime import date, datetime, timezone

import jwt
import pytest

from infirmary.config import settings
from infirmary.exceptions import Conflict, Forbidden, MissingFields, NotFound, Unauthenticated, ValidationFailed
from infirmary.schemas import (
    PatientCreate, PatientUpdate, ProfileUpdate, UserCreate, UserUpdate, VitalSignCreate, VitalSignUpdate,
)
from infirmary.security import verify_password
from infirmary.services.permission_service import (
    REASON_DELETE_SELF, REASON_GRANT_ADMIN, REASON_INSUFFICIENT_ROLE, REASON_PEER_ADMIN,
)
from infirmary.services.record_service import normalize_cedula, resolve_semestre

from conftest import (
    ADMIN, ADMIN_ID, ADMIN_ROLE_ID, FIXED_NOW, INACTIVE_ID, NURSE, NURSE_ID, NURSE_ROLE_ID, OTHER_ADMIN,
    OTHER_ADMIN_ID, PASSWORD, RECEPTIONIST, RECEPTIONIST_ID, SEEDED_PATIENT_ID, SEEDED_VITAL_SIGN_ID,
)


def run(coro):
    return asyncio.run(coro)


def patient_payload(**overrides):
    data = {
        "nombre": "Carlos",
        "apellido": "Rodríguez",
        "fecha_nacimiento": date(2004, 8, 20),
        "genero": "masculino",
        "area": "estudiante",
        "carrera": "Medicina",
        "semestre": "2do semestre",
        "cedula": "V-30.345.678",
    }
    data.update(overrides)
    return PatientCreate(**data)


def vital_payload(**overrides):
    data = {
        "temperature": 37.0,
        "oxygen_saturation": 95,
        "heart_rate": 72,
        "systolic_pressure": 120,
        "diastolic_pressure": 80,
    }
    data.update(overrides)
    return VitalSignCreate(**data)


# =====================================================================
# HELPERS
# =====================================================================

def test_normalize_cedula_keeps_only_digits():
    assert normalize_cedula("V-12.345.678") == "12345678"
    with pytest.raises(ValidationFailed) as excinfo:
        normalize_cedula("V-..")
    assert excinfo.value.field == "cedula"


def test_resolve_semestre():
    assert resolve_semestre("estudiante", " 3er semestre ") == "3er semestre"
    assert resolve_semestre("docente", "3er semestre") is None
    with pytest.raises(ValidationFailed):
        resolve_semestre("estudiante", None)


# =====================================================================
# PACIENTES
# =====================================================================

def test_create_patient_normalizes_cedula_and_records_creator(service, repo):
    patient = run(service.create_patient(NURSE, patient_payload()))

    assert patient.cedula == "30345678"
    assert patient.creado_por_user_id == NURSE_ID
    assert patient.creado_por.email == "enfermero@escuela.edu"


def test_create_patient_duplicate_cedula_after_normalization_conflicts(service):
    with pytest.raises(Conflict) as excinfo:
        run(service.create_patient(NURSE, patient_payload(cedula="28.457.689")))
    assert excinfo.value.field == "cedula"
    assert excinfo.value.status_code == 409


def test_create_student_without_semestre_fails_without_writing(service, repo):
    with pytest.raises(ValidationFailed) as excinfo:
        run(service.create_patient(NURSE, patient_payload(semestre=None)))
    assert excinfo.value.field == "semestre"
    assert repo.writes == 0


def test_create_non_student_drops_semestre(service):
    patient = run(service.create_patient(NURSE, patient_payload(area="docente", semestre="5to")))
    assert patient.semestre is None


def test_receptionist_cannot_touch_patients(service, repo):
    with pytest.raises(Forbidden) as excinfo:
        run(service.create_patient(RECEPTIONIST, patient_payload()))
    assert excinfo.value.reason == REASON_INSUFFICIENT_ROLE

    with pytest.raises(Forbidden):
        run(service.update_patient(RECEPTIONIST, SEEDED_PATIENT_ID, PatientUpdate(nombre="X")))
    with pytest.raises(Forbidden):
        run(service.list_patients(RECEPTIONIST))
    assert repo.writes == 0


def test_no_actor_is_unauthenticated(service, repo):
    with pytest.raises(Unauthenticated):
        run(service.create_patient(None, patient_payload()))
    assert repo.writes == 0


def test_list_patients_filters(service):
    run(service.create_patient(NURSE, patient_payload(area="docente", cedula="111")))

    assert len(run(service.list_patients(NURSE))) == 2
    assert [p.cedula for p in run(service.list_patients(NURSE, area="docente"))] == ["111"]
    assert [p.nombre for p in run(service.list_patients(NURSE, search="maría"))] == ["María"]


def test_get_missing_patient_is_not_found(service):
    with pytest.raises(NotFound):
        run(service.get_patient(NURSE, 999))


def test_update_patient_to_non_student_clears_semestre(service):
    patient = run(service.update_patient(NURSE, SEEDED_PATIENT_ID, PatientUpdate(area="docente")))
    assert patient.area == "docente"
    assert patient.semestre is None


def test_update_patient_clearing_semestre_of_student_fails(service, repo):
    with pytest.raises(ValidationFailed):
        run(service.update_patient(NURSE, SEEDED_PATIENT_ID, PatientUpdate(semestre=None)))
    assert repo.writes == 0


def test_update_patient_ignores_null_required_fields_and_clears_optional(service, repo):
    repo.patients[SEEDED_PATIENT_ID].alergias = "Penicilina"
    payload = PatientUpdate.model_validate({"nombre": None, "alergias": None, "cedula": "V-28.457.689"})

    patient = run(service.update_patient(NURSE, SEEDED_PATIENT_ID, payload))

    assert patient.nombre == "María"
    assert patient.alergias is None
    assert patient.cedula == "28457689"


def test_delete_patient_cascades_vital_signs(service, repo):
    run(service.delete_patient(NURSE, SEEDED_PATIENT_ID))
    assert SEEDED_PATIENT_ID not in repo.patients
    assert SEEDED_VITAL_SIGN_ID not in repo.vital_signs


# =====================================================================
# SIGNOS VITALES
# =====================================================================

def test_create_vital_sign_defaults_timestamp_to_clock(service):
    vital_sign = run(service.create_vital_sign(NURSE, SEEDED_PATIENT_ID, vital_payload(notes="")))

    assert vital_sign.timestamp == FIXED_NOW
    assert vital_sign.patient_id == SEEDED_PATIENT_ID
    assert vital_sign.notes is None


def test_create_vital_sign_keeps_given_timestamp(service):
    taken_at = datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)
    vital_sign = run(service.create_vital_sign(NURSE, SEEDED_PATIENT_ID, vital_payload(timestamp=taken_at)))
    assert vital_sign.timestamp == taken_at


def test_create_vital_sign_pressure_inconsistency_writes_nothing(service, repo):
    with pytest.raises(ValidationFailed) as excinfo:
        run(service.create_vital_sign(NURSE, SEEDED_PATIENT_ID, vital_payload(systolic_pressure=80, diastolic_pressure=90)))
    assert excinfo.value.field == "systolic_pressure"
    assert repo.writes == 0


def test_create_vital_sign_missing_fields(service, repo):
    with pytest.raises(MissingFields) as excinfo:
        run(service.create_vital_sign(NURSE, SEEDED_PATIENT_ID, VitalSignCreate(temperature=37)))
    assert excinfo.value.fields == ["heart_rate", "systolic_pressure", "diastolic_pressure"]
    assert repo.writes == 0


def test_authorization_runs_before_validation(service):
    with pytest.raises(Forbidden):
        run(service.create_vital_sign(RECEPTIONIST, SEEDED_PATIENT_ID, VitalSignCreate()))


def test_create_vital_sign_for_missing_patient(service, repo):
    with pytest.raises(NotFound):
        run(service.create_vital_sign(NURSE, 999, vital_payload()))
    assert repo.writes == 0


def test_list_vital_signs_newest_first(service):
    run(service.create_vital_sign(NURSE, SEEDED_PATIENT_ID, vital_payload()))
    readings = run(service.list_vital_signs(NURSE, SEEDED_PATIENT_ID))

    assert len(readings) == 2
    assert readings[0].timestamp > readings[1].timestamp


def test_update_vital_sign_partial(service):
    vital_sign = run(service.update_vital_sign(NURSE, SEEDED_VITAL_SIGN_ID, VitalSignUpdate(heart_rate=90)))
    assert vital_sign.heart_rate == 90
    assert vital_sign.systolic_pressure == 120


def test_update_vital_sign_checks_resulting_pressure(service, repo):
    with pytest.raises(ValidationFailed) as excinfo:
        run(service.update_vital_sign(NURSE, SEEDED_VITAL_SIGN_ID, VitalSignUpdate(diastolic_pressure=130)))
    assert excinfo.value.field == "systolic_pressure"
    assert repo.writes == 0


def test_update_vital_sign_explicit_null_on_required_field(service):
    payload = VitalSignUpdate.model_validate({"temperature": None})
    with pytest.raises(MissingFields):
        run(service.update_vital_sign(NURSE, SEEDED_VITAL_SIGN_ID, payload))


def test_update_vital_sign_can_clear_oxygen_saturation(service):
    payload = VitalSignUpdate.model_validate({"oxygen_saturation": None})
    vital_sign = run(service.update_vital_sign(NURSE, SEEDED_VITAL_SIGN_ID, payload))
    assert vital_sign.oxygen_saturation is None


def test_only_admin_deletes_vital_signs(service, repo):
    with pytest.raises(Forbidden):
        run(service.delete_vital_sign(NURSE, SEEDED_VITAL_SIGN_ID))
    run(service.delete_vital_sign(ADMIN, SEEDED_VITAL_SIGN_ID))
    assert SEEDED_VITAL_SIGN_ID not in repo.vital_signs


def test_delete_missing_vital_sign_is_not_found(service):
    with pytest.raises(NotFound):
        run(service.delete_vital_sign(ADMIN, "no-existe"))


def test_delete_unknown_uuid_is_not_found(service, repo):
    with pytest.raises(NotFound):
        run(service.delete_vital_sign(ADMIN, "6f1c2d3e-0000-4000-8000-00000000ffff"))
    assert repo.writes == 0


def test_update_malformed_vital_sign_id_is_not_found(service, repo):
    with pytest.raises(NotFound):
        run(service.update_vital_sign(NURSE, "abc", VitalSignUpdate(heart_rate=90)))
    assert repo.writes == 0


def test_malformed_vital_sign_id_still_requires_permission(service):
    with pytest.raises(Forbidden):
        run(service.delete_vital_sign(NURSE, "abc"))


# =====================================================================
# SENSOR
# =====================================================================

def test_sensor_reading_is_stored_without_patient(service, repo):
    vital_sign = run(service.ingest_sensor_reading(72.6, 97, 36.5))

    assert vital_sign.patient_id is None
    assert vital_sign.heart_rate == 73
    assert vital_sign.systolic_pressure is None
    assert vital_sign.timestamp == FIXED_NOW


def test_sensor_reading_out_of_range_is_rejected(service, repo):
    with pytest.raises(ValidationFailed):
        run(service.ingest_sensor_reading(72, 97, 60))
    assert repo.writes == 0


# =====================================================================
# USUARIOS
# =====================================================================

def test_admin_creates_user_with_hashed_password(service):
    payload = UserCreate(nombre="Nueva", apellido="Enfermera", email="nueva@escuela.edu", password="clave123", role_id=NURSE_ROLE_ID)
    user = run(service.create_user(ADMIN, payload))

    assert user.role.nombre == "Enfermero"
    assert verify_password("clave123", user.password_hash)
    assert not hasattr(user, "password")


def test_create_user_with_unknown_role(service, repo):
    payload = UserCreate(nombre="X", apellido="Y", email="x@escuela.edu", password="p", role_id=99)
    with pytest.raises(ValidationFailed) as excinfo:
        run(service.create_user(ADMIN, payload))
    assert excinfo.value.field == "role_id"
    assert repo.writes == 0


def test_create_user_duplicate_email(service):
    payload = UserCreate(nombre="X", apellido="Y", email="enfermero@escuela.edu", password="p", role_id=NURSE_ROLE_ID)
    with pytest.raises(Conflict) as excinfo:
        run(service.create_user(ADMIN, payload))
    assert excinfo.value.field == "email"


def test_nurse_cannot_manage_users(service):
    with pytest.raises(Forbidden):
        run(service.list_users(NURSE))
    with pytest.raises(Forbidden):
        run(service.delete_user(NURSE, RECEPTIONIST_ID))


@pytest.mark.parametrize("payload", [
    {"nombre": "Cambio"},
    {"activo": False},
    {"role_id": NURSE_ROLE_ID},
    {},
])
def test_admin_never_updates_peer_admin(service, repo, payload):
    with pytest.raises(Forbidden) as excinfo:
        run(service.update_user(ADMIN, OTHER_ADMIN_ID, UserUpdate(**payload)))
    assert excinfo.value.reason == REASON_PEER_ADMIN
    assert repo.writes == 0


def test_admin_never_deletes_peer_admin(service, repo):
    with pytest.raises(Forbidden) as excinfo:
        run(service.delete_user(ADMIN, OTHER_ADMIN_ID))
    assert excinfo.value.reason == REASON_PEER_ADMIN
    assert OTHER_ADMIN_ID in repo.users


def test_admin_cannot_grant_admin_role(service, repo):
    with pytest.raises(Forbidden) as excinfo:
        run(service.update_user(ADMIN, NURSE_ID, UserUpdate(role_id=ADMIN_ROLE_ID)))
    assert excinfo.value.reason == REASON_GRANT_ADMIN
    assert repo.users[NURSE_ID].role_id == NURSE_ROLE_ID


def test_admin_updates_nurse(service):
    user = run(service.update_user(ADMIN, NURSE_ID, UserUpdate(nombre="Juana", password="nueva")))
    assert user.nombre == "Juana"
    assert verify_password("nueva", user.password_hash)


def test_update_user_trims_email(service, repo):
    user = run(service.update_user(ADMIN, NURSE_ID, UserUpdate(email="  jefa.enfermeria@escuela.edu  ")))
    assert user.email == "jefa.enfermeria@escuela.edu"
    assert repo.users[NURSE_ID].email == "jefa.enfermeria@escuela.edu"


def test_update_user_blank_email_keeps_current(service, repo):
    run(service.update_user(ADMIN, NURSE_ID, UserUpdate(email="   ", nombre="Juana")))
    assert repo.users[NURSE_ID].email == "enfermero@escuela.edu"


def test_update_user_with_unknown_role(service):
    with pytest.raises(ValidationFailed):
        run(service.update_user(ADMIN, NURSE_ID, UserUpdate(role_id=99)))


def test_update_missing_user_is_not_found(service):
    with pytest.raises(NotFound):
        run(service.update_user(ADMIN, 999, UserUpdate(nombre="X")))


def test_admin_deletes_nurse(service, repo):
    run(service.delete_user(ADMIN, NURSE_ID))
    assert NURSE_ID not in repo.users


def test_nobody_deletes_themselves(service, repo):
    repo.users[ADMIN_ID].role_id = ADMIN_ROLE_ID
    # un admin sobre sí mismo choca primero con la protección entre admins
    with pytest.raises(Forbidden):
        run(service.delete_user(ADMIN, ADMIN_ID))

    # con rol no administrador en la cuenta objetivo aplica la regla de auto-eliminación
    repo.users[ADMIN_ID].role_id = NURSE_ROLE_ID
    with pytest.raises(Forbidden) as excinfo:
        run(service.delete_user(ADMIN, ADMIN_ID))
    assert excinfo.value.reason == REASON_DELETE_SELF
    assert ADMIN_ID in repo.users


def test_anyone_lists_roles(service):
    roles = run(service.list_roles(RECEPTIONIST))
    assert [r.nombre for r in roles] == ["Administrador", "Enfermero", "Recepcionista"]


# =====================================================================
# LOGIN Y PERFIL
# =====================================================================

def test_login_returns_token_with_claims(service, repo):
    result = run(service.login("enfermero@escuela.edu", PASSWORD))

    claims = jwt.decode(result["token"], settings.jwt_secret, algorithms=[settings.jwt_alg])
    assert claims["sub"] == str(NURSE_ID)
    assert claims["role"] == "Enfermero"
    assert claims["email"] == "enfermero@escuela.edu"
    assert claims["typ"] == "access"
    assert repo.users[NURSE_ID].ultimavez is not None


@pytest.mark.parametrize("email,password", [
    ("enfermero@escuela.edu", "incorrecta"),
    ("nadie@escuela.edu", PASSWORD),
])
def test_login_invalid_credentials(service, email, password):
    with pytest.raises(Unauthenticated) as excinfo:
        run(service.login(email, password))
    assert excinfo.value.message == "Credenciales inválidas"


def test_login_inactive_user(service):
    with pytest.raises(Forbidden) as excinfo:
        run(service.login("inactivo@escuela.edu", PASSWORD))
    assert excinfo.value.message == "Usuario inactivo"


def test_get_profile(service):
    user = run(service.get_profile(RECEPTIONIST))
    assert user.email == "recepcion@escuela.edu"


def test_admin_updates_own_profile(service):
    user = run(service.update_profile(ADMIN, ProfileUpdate(nombre="Admin2")))
    assert user.nombre == "Admin2"


def test_profile_password_change_requires_current_password(service, repo):
    with pytest.raises(ValidationFailed) as excinfo:
        run(service.update_profile(NURSE, ProfileUpdate(password="otra")))
    assert excinfo.value.field == "currentPassword"

    with pytest.raises(ValidationFailed):
        run(service.update_profile(NURSE, ProfileUpdate(password="otra", currentPassword="mal")))
    assert repo.writes == 0

    user = run(service.update_profile(NURSE, ProfileUpdate(password="otra", currentPassword=PASSWORD)))
    assert verify_password("otra", user.password_hash)


def test_profile_email_must_be_unique(service):
    with pytest.raises(Conflict) as excinfo:
        run(service.update_profile(NURSE, ProfileUpdate(email="admin@escuela.edu")))
    assert excinfo.value.field == "email"


def test_profile_avatar_presence_semantics(service, repo):
    repo.users[NURSE_ID].imagen_url = "data:image/png;base64,AAA"

    run(service.update_profile(NURSE, ProfileUpdate(nombre="Sin cambio de avatar")))
    assert repo.users[NURSE_ID].imagen_url == "data:image/png;base64,AAA"

    run(service.update_profile(NURSE, ProfileUpdate.model_validate({"imagen_url": None})))
    assert repo.users[NURSE_ID].imagen_url is None

    repo.users[NURSE_ID].imagen_url = "https://cdn/avatar.png"
    run(service.update_profile(NURSE, ProfileUpdate(imagen_url="")))
    assert repo.users[NURSE_ID].imagen_url is None


def test_profile_requires_actor(service):
    with pytest.raises(Unauthenticated):
        run(service.get_profile(None))


# =====================================================================
# ESTADÍSTICAS
# =====================================================================

def test_statistics_admin_only(service):
    with pytest.raises(Forbidden):
        run(service.get_statistics(NURSE))


def test_statistics_summary(service):
    summary = run(service.get_statistics(ADMIN))

    assert summary.totalPatients == 1
    assert summary.totalVitalSigns == 1
    assert summary.activeUsers == 4
    assert summary.averageAge == 19
    assert summary.patientsByDay[-2].count == 1
    assert summary.patientsByDay[-1].date == "2024-06-15"
    assert [p.id for p in summary.recentPatients] == [SEEDED_PATIENT_ID]
