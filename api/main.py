from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api import sessions
from api.schemas import ChartTypeRequest, CreateSessionRequest, FiltersRequest
from autobi.analysis import normalize_analysis
from autobi.charts import registry_payload
from autobi.config import load_settings, normalize_settings
from autobi.dashboard import compute_dashboard
from autobi.data import dataset_from_records
from autobi.export import ExportArtifact, export_powerbi, export_tableau
from autobi.session import (
    create_session,
    filtered_view,
    reset_filters,
    set_filters,
    switch_chart_type,
)


app = FastAPI(title="AutoBI Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _session_not_found(session_id: str) -> JSONResponse:
    return _error(404, LookupError(f"unknown session {session_id}"))


def _attachment(artifact: ExportArtifact) -> Response:
    return Response(
        content=artifact.to_bytes(),
        media_type=artifact.mime_type,
        headers={"Content-Disposition": f"attachment; filename={artifact.file_name}"},
    )


@app.get("/meta/chart-types")
def meta_chart_types():
    return _json({"chart_types": registry_payload()})


@app.post("/sessions")
def create_session_endpoint(body: CreateSessionRequest):
    try:
        analysis = normalize_analysis(body.analysis.model_dump())
    except ValueError as exc:
        return _error(422, exc)
    try:
        settings = normalize_settings(body.settings.model_dump()) if body.settings else load_settings()
        dataset = dataset_from_records(body.rows)
        session = create_session(dataset, analysis, body.file_name, settings)
        session_id = sessions.create(session)
        return _json(
            {
                "session_id": session_id,
                "filter_options": session.filter_options,
                "chart_types": [c.value for c in session.chart_types],
            }
        )
    except Exception as exc:
        logger.exception("create_session failed")
        return _error(500, exc)


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    if not sessions.delete(session_id):
        return _session_not_found(session_id)
    return _json({"session_id": session_id, "deleted": True})


@app.get("/sessions/{session_id}/dashboard")
def dashboard(session_id: str, template: str | None = None):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        return _json(compute_dashboard(session, template_name=template))
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(500, exc)


@app.put("/sessions/{session_id}/filters")
def update_filters(session_id: str, body: FiltersRequest):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        session = set_filters(session, body.filters)
        sessions.save(session_id, session)
        return _json(compute_dashboard(session))
    except Exception as exc:
        logger.exception("update_filters failed")
        return _error(500, exc)


@app.delete("/sessions/{session_id}/filters")
def clear_filters(session_id: str):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        session = reset_filters(session)
        sessions.save(session_id, session)
        return _json(compute_dashboard(session))
    except Exception as exc:
        logger.exception("clear_filters failed")
        return _error(500, exc)


@app.put("/sessions/{session_id}/charts/{index}")
def update_chart_type(session_id: str, index: int, body: ChartTypeRequest):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        session = switch_chart_type(session, index, body.chart_type)
    except IndexError as exc:
        return _error(404, exc)
    sessions.save(session_id, session)
    try:
        return _json(compute_dashboard(session)["charts"][index])
    except Exception as exc:
        logger.exception("update_chart_type failed")
        return _error(500, exc)


@app.get("/sessions/{session_id}/export/powerbi")
def export_powerbi_endpoint(session_id: str):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        artifact = export_powerbi(
            session.analysis,
            filtered_view(session),
            session.file_name,
            snippet_rows=session.settings.snippet_rows,
        )
        return _attachment(artifact)
    except Exception as exc:
        logger.exception("export_powerbi failed")
        return _error(500, exc)


@app.get("/sessions/{session_id}/export/tableau")
def export_tableau_endpoint(session_id: str):
    session = sessions.get(session_id)
    if session is None:
        return _session_not_found(session_id)
    try:
        return _attachment(export_tableau(session.analysis, session.file_name))
    except Exception as exc:
        logger.exception("export_tableau failed")
        return _error(500, exc)
