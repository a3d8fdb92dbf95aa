"""FastAPI application."""

from fastapi import FastAPI

from roadtrip.api.routes.cities import router as cities_router
from roadtrip.api.routes.health import router as health_router
from roadtrip.api.routes.metrics import router as metrics_router
from roadtrip.api.routes.trips import router as trips_router

app = FastAPI(title="Road Trip Planner API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router, tags=["trips"])
app.include_router(cities_router, tags=["cities"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Road Trip Planner API", "version": "0.1.0"}
