"""
FastAPI Web Application for Ride Recording

This module provides a REST API for recording a live ride: sensors post
samples, the app keeps zone time and lap markers, and the finished workout
can be downloaded as CSV, TCX or JSON.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

import ride_telemetry
from ride_telemetry.logging_config import setup_logging
from ride_telemetry.schemas import GpsRequest, LapRequest, MeasurementRequest, ProfileRequest


# ============================================================================
# APPLICATION SETUP
# ============================================================================

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Ride Telemetry")

# One recording at a time, configured from the environment
recording = ride_telemetry.RecordingSession.from_config()


def download_response(body: str, filename: str, media_type: str) -> PlainTextResponse:
    """
    Wrap an export string in a download response.

    Raises:
        HTTPException: If the export is empty (status 404).
    """
    if not body:
        raise HTTPException(status_code=404, detail="No measurements recorded")
    logger.info("Exporting %s (%d bytes)", filename, len(body))
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return PlainTextResponse(
        body,
        media_type=media_type,
        headers=headers
    )


# ============================================================================
# API ROUTES - RECORDING
# ============================================================================

@app.get("/api/health")
def health():
    return {"status": "ok", "has_data": recording.measurements.has_data()}


@app.post("/api/measurements")
def add_measurement(request: MeasurementRequest):
    """
    Record one sensor sample.

    Samples that fail validation are not an error: the response reports
    accepted false and the sample is dropped.

    Returns:
        Dictionary with accepted, zone (current zone status for power and
        heart rate samples) and lap (auto-lap marker, if one was triggered).

    Raises:
        HTTPException: If the metric type is unknown (status 400).
    """
    try:
        return recording.record(request.type, request.timestamp, request.value)
    except ride_telemetry.UnknownMeasurementTypeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/gps")
def add_gps(request: GpsRequest):
    return recording.record_gps(request.model_dump())


@app.post("/api/laps")
def add_lap(request: Optional[LapRequest] = None):
    """
    Mark a manual lap.

    Raises:
        HTTPException: If the marker is earlier than the previous one (status 409).
    """
    timestamp = request.timestamp if request is not None else None
    lap = recording.mark_lap(timestamp)
    if lap is None:
        raise HTTPException(status_code=409, detail="Lap marker is earlier than the previous lap")
    return lap


@app.put("/api/profile")
def set_profile(request: ProfileRequest):
    """Set FTP and max heart rate; zone accumulation restarts."""
    recording.set_profile(request.ftp, request.max_hr)
    return {"ftp": recording.zones.ftp, "max_hr": recording.zones.max_hr}


@app.post("/api/reset")
def reset():
    recording.reset()
    return {"status": "reset"}


# ============================================================================
# API ROUTES - DATA RETRIEVAL
# ============================================================================

@app.get("/api/zones")
def get_zones():
    """
    Get the power and heart rate zone distributions.

    Returns:
        Dictionary with power and heartrate distributions, the current
        zones and the reference values.
    """
    return recording.zone_payload()


@app.get("/api/session")
def get_session():
    """
    Get the complete session payload.

    Returns counts, workout summary, lap summaries, zone distributions and
    the merged 1-second timeline.
    """
    return recording.build_session_payload()


@app.get("/api/merged")
def get_merged():
    return ride_telemetry.merge_measurements(recording.measurements)


# ============================================================================
# API ROUTES - EXPORT
# ============================================================================

@app.get("/api/export/csv")
def export_csv(include_laps: bool = True):
    """
    Export the merged timeline as CSV.

    Returns:
        PlainTextResponse: CSV file with Content-Disposition header
        for download. Filename: ride.csv

    Raises:
        HTTPException: If nothing was recorded (status 404).
    """
    return download_response(recording.to_csv(include_laps=include_laps), "ride.csv", "text/csv")


@app.get("/api/export/tcx")
def export_tcx():
    """
    Export the workout as Garmin TCX.

    Raises:
        HTTPException: If no power, cadence or heart rate was recorded (status 404).
    """
    return download_response(recording.to_tcx(), "ride.tcx", "application/vnd.garmin.tcx+xml")


@app.get("/api/export/json")
def export_json():
    return download_response(recording.to_json(), "ride.json", "application/json")


# ============================================================================
# RUN INSTRUCTIONS
# ============================================================================
# Run with: uvicorn app:app --reload
