"""
Request bodies for the recording API.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MeasurementRequest(BaseModel):
    """One sensor sample"""
    # Plain str so an unknown tag reaches the store and maps to 400, not 422
    type: str = Field(..., description="Metric tag: heartrate, power, cadence, speed, distance or altitude")
    timestamp: int = Field(..., description="Sample time in Unix milliseconds")
    value: float = Field(..., description="Sample value in the metric's unit")


class GpsRequest(BaseModel):
    """One GPS fix"""
    timestamp: int = Field(..., description="Fix time in Unix milliseconds")
    lat: float = Field(..., description="Latitude in degrees")
    lon: float = Field(..., description="Longitude in degrees")
    accuracy: Optional[float] = Field(None, description="Horizontal accuracy in meters")
    altitude: Optional[float] = Field(None, description="Altitude in meters")
    speed: Optional[float] = Field(None, description="Speed in m/s")
    heading: Optional[float] = Field(None, description="Heading in degrees")


class LapRequest(BaseModel):
    """Manual lap marker"""
    timestamp: Optional[int] = Field(None, description="Lap time in Unix milliseconds, defaults to now")


class ProfileRequest(BaseModel):
    """Zone reference values"""
    ftp: Optional[float] = Field(None, description="Functional threshold power in watts")
    max_hr: Optional[float] = Field(None, description="Maximum heart rate in bpm")
