"""FastAPI web interface for the route planner."""

from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .database import get_db
from .geo import Coordinates
from .models import RoutingError, route_to_dict, station_to_dict
from .planner import get_planner

app = FastAPI(
    title="Metro Planner",
    description="Multi-modal metro route planning",
    version="0.1.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RouteRequest(BaseModel):
    origin: str
    destination: str
    user_id: Optional[str] = "default"


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Metro Planner"}


@app.post("/routes")
async def plan_routes_endpoint(request: RouteRequest):
    """Plan ranked routes between two stations."""
    planner = get_planner()
    origin = planner.resolve_station(request.origin)
    destination = planner.resolve_station(request.destination)
    if not origin:
        raise HTTPException(status_code=404, detail=f"Station not found: {request.origin}")
    if not destination:
        raise HTTPException(status_code=404, detail=f"Station not found: {request.destination}")

    result = planner.plan_routes(origin.id, destination.id)
    if isinstance(result, RoutingError):
        raise HTTPException(status_code=400, detail={"code": result.code.value, "message": result.message})

    get_db().add_search(origin.id, destination.id, len(result), request.user_id or "default")

    return {
        "origin": station_to_dict(origin),
        "destination": station_to_dict(destination),
        "count": len(result),
        "routes": [route_to_dict(r) for r in result],
    }


@app.get("/stations")
async def list_stations(line: Optional[str] = None):
    """List all stations, optionally filtered by line."""
    graph = get_planner().graph

    if line:
        transit_line = graph.lines.get(line) or graph.lines.get(line.lower())
        ids = list(transit_line.station_ids) if transit_line else []
    else:
        ids = list(graph.stations)

    return {
        "count": len(ids),
        "stations": [
            {**station_to_dict(graph.stations[sid]), "lines": list(graph.lines_of(sid))}
            for sid in ids
        ]
    }


@app.get("/stations/nearest")
async def nearest_stations(lat: float, lng: float, limit: int = 5, radius: Optional[float] = None):
    """Stations closest to a point, within walking radius by default."""
    graph = get_planner().graph
    found = graph.nearest(Coordinates(lat, lng), k=limit, max_radius=radius)
    return {
        "count": len(found),
        "stations": [
            {**station_to_dict(station), "distance": round(distance)}
            for station, distance in found
        ]
    }


@app.get("/lines")
async def list_lines():
    graph = get_planner().graph
    return {
        "count": len(graph.lines),
        "lines": [
            {
                "id": line.id,
                "name": line.name,
                "color": line.color,
                "fare": line.fare,
                "stations": list(line.station_ids),
            }
            for line in graph.lines.values()
        ]
    }


@app.get("/history/{user_id}")
async def get_history(user_id: str, limit: int = 10):
    """Recent searches and most frequent trips for a user."""
    db = get_db()
    return {
        "user_id": user_id,
        "recent": db.get_recent_searches(user_id, limit),
        "popular": [
            {"origin": o, "destination": d, "count": c}
            for o, d, c in db.get_popular_trips(user_id)
        ],
    }


def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
