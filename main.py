import uvicorn
from fastapi import FastAPI
from infirmary.config import settings
from infirmary.middlewares import setup_middlewares
from infirmary.exceptions import setup_exception_handlers
from infirmary.routers import auth, users, patients, vital_signs, statistics, esp32, health
from infirmary.logging_config import logger

app = FastAPI(title="Infirmary API", version="1.0.0")

setup_middlewares(app)
setup_exception_handlers(app)

@app.on_event("startup")
async def startup_event():
    logger.info("Application starting", extra={"version": "1.0.0", "port": settings.port})

app.include_router(auth.router, prefix="/api")
app.include_router(patients.router, prefix="/api")
app.include_router(vital_signs.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(statistics.router, prefix="/api")
app.include_router(esp32.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
def root():
    return {"ok": True, "docs": "/docs"}



if __name__ == "__main__":
    uvicorn.run("main:app", reload=settings.is_development, host="0.0.0.0", port=settings.port)
