# ckd_app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .db import Base, engine
from .gcua_routes import router as gcua_router
from .notifications import router as notifications_router
from .models import Patient, PatientRiskFactors, Observation, Condition  # noqa: F401
from .models_gcua import GCUAAssessmentRecord  # noqa: F401

app = FastAPI(title=config.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create tables (models above register themselves on Base)
Base.metadata.create_all(bind=engine)


@app.get("/status")
def status():
    return {"ok": True}


# Routers
app.include_router(gcua_router)
app.include_router(notifications_router)
