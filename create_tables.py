#!/usr/bin/env python3
"""
Crea las tablas de la enfermería (role, user, patient, vital_sign).

Uso:
    python create_tables.py           # Crea las tablas que falten
    python create_tables.py --drop    # Borra y recrea todo (¡pierde datos!)
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from infirmary.db import database_url
from infirmary.models import Base

async def main(drop: bool = False):
    engine = create_async_engine(database_url, echo=True)

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("🗑️  Tablas eliminadas")
        await conn.run_sync(Base.metadata.create_all)

    await engine.dispose()
    print(f"✅ Tablas listas: {', '.join(sorted(Base.metadata.tables))}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Crear las tablas de la base de datos")
    parser.add_argument("--drop", action="store_true", help="Eliminar las tablas existentes antes de crearlas")
    args = parser.parse_args()
    asyncio.run(main(drop=args.drop))
