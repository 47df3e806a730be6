"""Pydantic schemas for the workout statistics response."""

import datetime as dt

from pydantic import BaseModel, Field


class DailyStat(BaseModel):
    """Completed-workout totals for one calendar day."""

    date: dt.date = Field(description="Day of the stored workout date (no timezone conversion)")
    total_duration: int = Field(ge=0, description="Sum of durations (minutes)")
    total_calories: int = Field(ge=0, description="Sum of calories burned")
    workout_count: int = Field(ge=1, description="Completed workouts on this day")


class StatsTotals(BaseModel):
    """Totals across every emitted daily bucket."""

    total_duration: int = Field(default=0, ge=0)
    total_calories: int = Field(default=0, ge=0)
    total_workouts: int = Field(default=0, ge=0)
    avg_duration: float = Field(default=0.0, description="Mean duration per workout")
    avg_calories: float = Field(default=0.0, description="Mean calories per workout")


class WorkoutStats(BaseModel):
    """Daily buckets in ascending date order, plus totals."""

    daily_stats: list[DailyStat] = Field(default_factory=list)
    totals: StatsTotals = Field(default_factory=StatsTotals)
