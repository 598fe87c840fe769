#!/usr/bin/env python3
# =====================================================================
# SCRIPT DE SEEDS PARA BASE DE DATOS
# =====================================================================
"""
Pobla la base de datos con roles, cuentas de prueba, pacientes de ejemplo
y signos vitales de los últimos 30 días. Es idempotente: los registros que
ya existen (por nombre de rol, email o cédula) no se duplican.

Uso:
    python seeds.py            # Datos de desarrollo
    python seeds.py --clear    # Vacía las tablas antes de crear
"""

import asyncio
import argparse
import random
from datetime import datetime, timedelta, date, timezone
from typing import List

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from infirmary.db import AsyncSessionLocal, engine
from infirmary.models import Role, User, Patient, VitalSign
from infirmary.security import hash_password, new_uuid

# =====================================================================
# DATOS DE PRUEBA
# =====================================================================

ROLES = [
    ("Administrador", "Acceso completo al sistema"),
    ("Enfermero", "Gestión de pacientes y signos vitales"),
]

USUARIOS = [
    # (nombre, apellido, email, contraseña, rol)
    ("Admin", "Sistema", "admin@escuela.edu", "admin123", "Administrador"),
    ("Enfermero", "Principal", "enfermero@escuela.edu", "enfermero123", "Enfermero"),
]

PACIENTES = [
    ("María", "González", date(2005, 5, 15), "femenino", "Ingeniería de Sistemas", "1er semestre", "28457689"),
    ("Carlos", "Rodríguez", date(2004, 8, 20), "masculino", "Medicina", "2do semestre", "30345678"),
    ("Ana", "Martínez", date(2003, 12, 10), "femenino", "Enfermería", "3er semestre", "31234567"),
    ("Luis", "Fernández", date(2002, 3, 25), "masculino", "Psicología", "4to semestre", "29456789"),
    ("Sofía", "López", date(2001, 7, 12), "femenino", "Derecho", "5to semestre", "27456789"),
]

# =====================================================================
# SEEDER
# =====================================================================

class DatabaseSeeder:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.counts = {"roles": 0, "usuarios": 0, "pacientes": 0, "signos vitales": 0}

    async def create_roles(self) -> dict:
        print("🔐 Creando roles...")
        roles = {}
        for nombre, descripcion in ROLES:
            role = (await self.session.execute(select(Role).where(Role.nombre == nombre))).scalar_one_or_none()
            if role is None:
                role = Role(nombre=nombre, descripcion=descripcion)
                self.session.add(role)
                self.counts["roles"] += 1
            roles[nombre] = role
        await self.session.flush()
        return roles

    async def create_users(self, roles: dict) -> dict:
        print("👤 Creando usuarios...")
        users = {}
        for nombre, apellido, email, password, role_name in USUARIOS:
            user = (await self.session.execute(select(User).where(User.email == email))).scalar_one_or_none()
            if user is None:
                user = User(
                    nombre=nombre,
                    apellido=apellido,
                    email=email,
                    password_hash=hash_password(password),
                    role_id=roles[role_name].id,
                    activo=True,
                    ultimavez=datetime.now(timezone.utc),
                )
                self.session.add(user)
                self.counts["usuarios"] += 1
            users[role_name] = user
        await self.session.flush()
        return users

    def random_vital_sign(self, patient_id: int, days_ago: int) -> VitalSign:
        """Toma aleatoria entre las 8 y las 18 h, dentro de los rangos clínicos"""
        timestamp = (datetime.now(timezone.utc) - timedelta(days=days_ago)).replace(
            hour=8 + random.randint(0, 9),
            minute=random.randint(0, 59),
            second=0,
            microsecond=0,
        )
        return VitalSign(
            id=new_uuid(),
            patient_id=patient_id,
            temperature=round(random.uniform(36.0, 38.0), 1),
            oxygen_saturation=round(random.uniform(90, 100), 1),
            heart_rate=random.randint(50, 119),
            systolic_pressure=random.randint(90, 139),
            diastolic_pressure=random.randint(55, 89),
            timestamp=timestamp,
            notes="Paciente en buen estado" if random.random() > 0.7 else None,
        )

    async def create_patients(self, creator: User) -> List[Patient]:
        print("🩺 Creando pacientes y signos vitales...")
        patients = []
        for nombre, apellido, nacimiento, genero, carrera, semestre, cedula in PACIENTES:
            patient = (await self.session.execute(select(Patient).where(Patient.cedula == cedula))).scalar_one_or_none()
            if patient is not None:
                patients.append(patient)
                continue

            patient = Patient(
                nombre=nombre,
                apellido=apellido,
                fecha_nacimiento=nacimiento,
                genero=genero,
                area="estudiante",
                carrera=carrera,
                semestre=semestre,
                cedula=cedula,
                creado_por_user_id=creator.id,
            )
            self.session.add(patient)
            await self.session.flush()
            self.counts["pacientes"] += 1

            # Entre 3 y 8 tomas en días distintos del último mes
            for days_ago in random.sample(range(30), random.randint(3, 8)):
                self.session.add(self.random_vital_sign(patient.id, days_ago))
                self.counts["signos vitales"] += 1
            patients.append(patient)
        return patients

    async def seed_development(self):
        print("🌱 Iniciando seed de la base de datos...")
        roles = await self.create_roles()
        users = await self.create_users(roles)
        await self.create_patients(users["Enfermero"])
        await self.session.commit()
        print("✅ Datos de desarrollo creados")

    def print_summary(self):
        print("\n" + "="*60)
        print("📊 RESUMEN DE DATOS CREADOS")
        print("="*60)
        for name, count in self.counts.items():
            print(f"  {name}: {count}")
        print("\n🔑 CREDENCIALES DE ACCESO:")
        for _, _, email, password, role_name in USUARIOS:
            print(f"  - {role_name}: {email} / {password}")
        print("="*60)

# =====================================================================
# FUNCIÓN PRINCIPAL
# =====================================================================

async def main():
    """Función principal que maneja los argumentos y ejecuta el seeding"""
    parser = argparse.ArgumentParser(description='Script de seeds para la base de datos')
    parser.add_argument('--clear', action='store_true', help='Limpiar datos existentes antes de crear')

    args = parser.parse_args()

    async with AsyncSessionLocal() as session:
        seeder = DatabaseSeeder(session)

        try:
            if args.clear:
                print("🗑️  Limpiando datos existentes...")
                await session.execute(text(
                    'TRUNCATE vital_sign, patient, "user", role RESTART IDENTITY CASCADE;'
                ))
                await session.commit()
                print("✅ Datos limpiados")

            await seeder.seed_development()
            seeder.print_summary()

        except Exception as e:
            print(f"❌ Error durante el seeding: {e}")
            await session.rollback()
            raise

        finally:
            await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
