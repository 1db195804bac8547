from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)

from obs_delay.errors import InvalidDelayError, MissingFieldError, MutationError
from obs_delay.pages.list_view import render_list_page
from obs_delay.services.delay_service import DelayService


async def _json_body(request: Request) -> dict:
    """Request body as a dict; anything else (bad JSON, a list, ...) reads as empty."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def build_router(service: DelayService) -> APIRouter:
    """HTML list view, JSON API and form handler backed by ``service``."""
    router = APIRouter()

    @router.get("/", response_class=HTMLResponse)
    async def list_view() -> Response:
        try:
            readings = await service.list_delays()
            return HTMLResponse(render_list_page(readings))
        except Exception:
            logging.exception("Error generating page")
            return PlainTextResponse("Error generating page.", status_code=500)

    @router.get("/api/cameras")
    async def get_cameras() -> Response:
        try:
            readings = await service.list_delays()
            return JSONResponse([r.to_json() for r in readings])
        except Exception:
            logging.exception("Failed to fetch camera delays")
            return JSONResponse(
                {"error": "Failed to fetch camera delays."}, status_code=500
            )

    @router.post("/api/cameras")
    async def set_camera(request: Request) -> Response:
        payload = await _json_body(request)
        camera_name = payload.get("cameraName")
        try:
            delay = await service.update_delay(camera_name, payload.get("delay"))
        except MissingFieldError:
            return JSONResponse(
                {"error": "Missing cameraName or delay."}, status_code=400
            )
        except InvalidDelayError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except MutationError:
            return JSONResponse({"error": "Failed to set camera delay."}, status_code=500)
        return JSONResponse({"success": True, "cameraName": camera_name, "delay": delay})

    @router.post("/update-delay")
    async def update_delay_form(request: Request) -> Response:
        form = await request.form()
        try:
            await service.update_delay(form.get("cameraName"), form.get("newDelay"))
        except MissingFieldError:
            return PlainTextResponse("Missing cameraName or newDelay.", status_code=400)
        except InvalidDelayError as e:
            return PlainTextResponse(str(e), status_code=400)
        except MutationError:
            return PlainTextResponse("Failed to set camera delay.", status_code=500)
        return RedirectResponse("/", status_code=302)

    return router
