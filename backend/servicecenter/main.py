## File: backend/servicecenter/main.py
# This file initializes the FastAPI application, configures logging and CORS,
# and includes the routers for vehicles, service records, call tracking,
# analytics dashboards and reports.

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servicecenter.analytics.routes import router as analytics_router
from servicecenter.calls.routes import router as call_router
from servicecenter.core.config import settings
from servicecenter.reports.routes import router as report_router
from servicecenter.service_records.routes import router as service_record_router
from servicecenter.vehicles.routes import router as vehicle_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Service Center API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analytics_router)
app.include_router(call_router)
app.include_router(report_router)
app.include_router(service_record_router)
app.include_router(vehicle_router)


@app.get("/")
async def root():
    return {"message": "Service Center API", "env": settings.env}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "data_source_configured": settings.supabase.is_configured}
