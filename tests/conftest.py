import pytest
from fastapi.testclient import TestClient

from quake_dashboard.records import Quake

USGS_HEADER = (
    "time,latitude,longitude,depth,mag,magType,nst,gap,dmin,rms,net,id,updated,place,type,"
    "horizontalError,depthError,magError,magNst,status,locationSource,magSource"
)

USGS_CSV = "\n".join([
    USGS_HEADER,
    '2025-11-15T14:03:25.123Z,38.8213,-122.8131638,1.63,0.91,md,12,82,0.009,0.02,nc,nc75263106,'
    '2025-11-15T14:05:01.040Z,"5 km NW of The Geysers, CA",earthquake,0.29,0.5,0.19,10,automatic,nc,nc',
    '2025-11-15T13:58:10.000Z,61.5,-149.9,35.2,,ml,,,,0.51,ak,ak0251,'
    '2025-11-15T14:00:00.000Z,"Southern Alaska",earthquake,,0.3,,,reviewed,ak,ak',
    "",
])

USGS_GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "id": "us123",
            "properties": {
                "time": 1700000000000, "updated": 1700000100000, "mag": 3.2,
                "place": "10km W of Test, CA", "type": "earthquake", "magType": "mb",
                "net": "us", "status": "reviewed", "magSource": "us",
            },
            "geometry": {"type": "Point", "coordinates": [-121.5, 37.5, 10.0]},
        },
        {
            "type": "Feature",
            "id": "us999",
            "properties": {"time": 1700000100000, "mag": None, "place": None},
            "geometry": {"type": "Point", "coordinates": [-100.0, 40.0]},
        },
    ],
}

def csv_feed(n: int) -> str:
    """A feed of n small quakes, ids q0..q{n-1}, magnitude rising with the index."""
    lines = [USGS_HEADER]
    for i in range(n):
        lines.append(
            f"2025-11-15T10:{i // 60:02d}:{i % 60:02d}.000Z,{10 + i * 0.1:.1f},{-120 - i * 0.1:.1f},5,"
            f"{i / 10:.1f},ml,,,,,ci,q{i},2025-11-15T12:00:00.000Z,Place {i},earthquake,,,,,automatic,ci,ci"
        )
    return "\n".join(lines) + "\n"

def make_quake(id: str, **kw) -> Quake:
    fields = dict(time="2025-11-15T14:03:25.000Z", updated="", latitude=0.0, longitude=0.0, depth=0.0, mag=1.0)
    fields.update(kw)
    return Quake(id=id, **fields)

@pytest.fixture
def client():
    from quake_dashboard.main import app
    with TestClient(app) as c:
        yield c
