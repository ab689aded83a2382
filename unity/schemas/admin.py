"""Schemas for the admin dashboard."""

from pydantic import BaseModel


class Stats(BaseModel):
    users: int
    posts: int
    comments: int
    heroes: int


class DashboardResponse(BaseModel):
    stats: Stats
    message: str
