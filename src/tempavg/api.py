# fastapi surface over the temperature cache
#   GET  /city/temperature/annual/average?city=  -> yearly averages for one city
#   GET  /cities                                 -> cached city names (diagnostics)
#   POST /reload                                 -> explicit reload of the source file
#   GET  /health                                 -> liveness
# run with: uvicorn tempavg.api:app

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from .config import load_settings
from .errors import CityNotFoundError, InvalidCityError
from .service import TemperatureService

def create_app(service: Optional[TemperatureService] = None, watch: bool = True) -> FastAPI:
    # the service is built lazily from the environment unless one is handed in
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = service if service is not None else TemperatureService(load_settings())
        app.state.service = svc
        svc.start(watch=watch)
        try:
            yield
        finally:
            svc.stop()

    app = FastAPI(title="tempavg", lifespan=lifespan)

    @app.get("/city/temperature/annual/average")
    def annual_average(request: Request, city: str = Query("")) -> Dict[str, Any]:
        svc: TemperatureService = request.app.state.service
        try:
            result = svc.lookup(city)
        except InvalidCityError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except CityNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/cities")
    def cities(request: Request) -> List[str]:
        return request.app.state.service.cities()

    @app.post("/reload")
    def reload(request: Request) -> Dict[str, Any]:
        svc: TemperatureService = request.app.state.service
        report = svc.loader.reload()
        if report is None:
            # another reload is running, the request is dropped rather than queued
            return {"status": "skipped"}
        return {
            "status": "ok" if report.ok else "failed",
            "cities": report.cities,
            "records": report.records,
            "skipped": len(report.skipped),
            "error": report.error,
        }

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "healthy"}

    return app

app = create_app()
