"""
Boundary request and response models.
"""

from pydantic import BaseModel, ConfigDict, Field


class TrajectoryRequest(BaseModel):
    """Trajectory request with validation"""
    model_config = ConfigDict(frozen=True)

    line1: str
    line2: str
    # negative durations collapse to a single sample at epoch
    duration_hours: float = Field(allow_inf_nan=False)
    step_minutes: float = Field(gt=0.0, allow_inf_nan=False)


class TrajectoryPoint(BaseModel):
    """One trajectory sample: TEME state plus geodetic position"""
    tsince_minutes: float
    x_km: float
    y_km: float
    z_km: float
    vx_kms: float
    vy_kms: float
    vz_kms: float
    latitude_deg: float
    longitude_deg: float
    altitude_km: float
