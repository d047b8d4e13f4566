# quake_dashboard/main.py
from __future__ import annotations
import time, json, logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request, Form, Response, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST

from quake_dashboard.config import Settings
from quake_dashboard.details import detail_fields, detail_title
from quake_dashboard.events import bus
from quake_dashboard.records import NUMERIC_FIELDS
from quake_dashboard.session import DashboardSession, SessionRegistry, GATE, READY
from quake_dashboard.table import PAGE_SIZES, TABLE_COLUMNS
from quake_dashboard.usgs import FeedError

settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Earthquake Feed Dashboard")

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
TEMPLATES_DIR = BASE_DIR / "templates"

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

SESSION_COOKIE = "quake_session"
sessions = SessionRegistry(settings, events=bus)

# ---------- metrics ----------
QUAKES_LOADED  = Counter("quakes_loaded_total",      "Total quake records loaded from the feed")
FETCH_ERRORS   = Counter("feed_fetch_errors_total",  "Feed fetches that failed")
SELECTIONS     = Counter("selections_total",         "Selection changes made from the chart or table")
LAST_FETCH_TS  = Gauge(  "last_fetch_timestamp",     "Last successful fetch epoch millis")
FETCH_LATENCY  = Histogram("feed_fetch_duration_seconds", "Feed fetch duration")

# ---------- helpers ----------
def _session(request: Request) -> Tuple[DashboardSession, bool]:
    return sessions.get_or_create(request.cookies.get(SESSION_COOKIE))

def _with_cookie(resp: Response, session: DashboardSession, created: bool) -> Response:
    if created:
        resp.set_cookie(SESSION_COOKIE, session.id, httponly=True, samesite="lax")
    return resp

def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")

def _done(request: Request, session: DashboardSession, created: bool,
          payload: Dict[str, Any], status_code: int = 200) -> Response:
    """Page form posts go back to the dashboard; API callers get JSON."""
    if _wants_json(request):
        resp: Response = JSONResponse(payload, status_code=status_code)
    else:
        resp = RedirectResponse("/", status_code=303)
    return _with_cookie(resp, session, created)

def _selection_payload(session: DashboardSession) -> Dict[str, Any]:
    sel = session.selected
    return {
        "selected": sel.to_dict() if sel else None,
        "page": session.table.effective_page,
    }

def _view_context(session: DashboardSession) -> Dict[str, Any]:
    tz = settings.tzinfo()
    selected = session.selected
    ctx: Dict[str, Any] = {
        "status": session.status,
        "period": session.period,
        "error": session.error,
        "selected": selected,
    }
    if session.status != READY:
        return ctx

    table = session.table
    ctx.update(
        count=len(session.records),
        chart_json=session.chart.figure(session.records, selected).to_json(),
        x_key=session.chart.x_key,
        y_key=session.chart.y_key,
        axis_fields=NUMERIC_FIELDS,
        columns=TABLE_COLUMNS,
        sort_key=table.sort_key,
        descending=table.descending,
        rows=table.rows(selected=selected),
        page=table.effective_page + 1,
        total_pages=table.total_pages,
        page_size=table.page_size,
        page_sizes=PAGE_SIZES,
    )
    if selected is not None:
        ctx.update(
            detail_title=detail_title(selected),
            detail_fields=detail_fields(selected, tz),
        )
    return ctx

# ---------- pages ----------
@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    session, created = _session(request)
    with session.lock:
        ctx = _view_context(session)
    last = bus.tail(1, session=session.id)
    ctx["last_seq"] = last[-1]["seq"] if last else 0
    resp = templates.TemplateResponse(request, "index.html", ctx)
    return _with_cookie(resp, session, created)

@app.post("/period")
def choose_period(request: Request, period: str = Form(...)):
    session, created = _session(request)
    with session.lock:
        try:
            session.choose_period(period)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    return _done(request, session, created, {"status": session.status, "period": session.period})

@app.post("/period/reset")
def reset_period(request: Request):
    session, created = _session(request)
    with session.lock:
        session.reset()
    return _done(request, session, created, {"status": session.status})

@app.post("/data/load")
def load_data(request: Request):
    session, created = _session(request)
    with session.lock:
        if session.status == GATE:
            raise HTTPException(status_code=409, detail="choose a period first")
    # the fetch itself runs unlocked so other requests of this session are served meanwhile
    start = time.time()
    try:
        quakes = session.load()
    except ValueError as exc:
        # reset back to the gate while this request was on its way
        raise HTTPException(status_code=409, detail=str(exc))
    except FeedError as exc:
        FETCH_ERRORS.inc()
        logger.error("loading %s feed failed: %s", session.period, exc)
        resp = JSONResponse({"status": session.status, "error": session.error}, status_code=502)
        return _with_cookie(resp, session, created)
    QUAKES_LOADED.inc(len(quakes))
    LAST_FETCH_TS.set(int(time.time() * 1000))
    FETCH_LATENCY.observe(time.time() - start)
    resp = JSONResponse({"status": session.status, "period": session.period, "count": len(quakes)})
    return _with_cookie(resp, session, created)

# ---------- selection ----------
@app.get("/selection")
def get_selection(request: Request):
    session, created = _session(request)
    with session.lock:
        payload = _selection_payload(session)
    return _with_cookie(JSONResponse(payload), session, created)

@app.post("/selection")
def select_record(request: Request, id: str = Form("")):
    session, created = _session(request)
    with session.lock:
        before = session.selected
        try:
            quake = session.select(id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"no record with id {id!r}")
        if before is not quake:
            SELECTIONS.inc()
        payload = _selection_payload(session)
    return _done(request, session, created, payload)

@app.post("/selection/clear")
def clear_selection(request: Request):
    session, created = _session(request)
    with session.lock:
        session.selection.clear()
        payload = _selection_payload(session)
    return _done(request, session, created, payload)

# ---------- chart / table ----------
@app.post("/chart/axes")
def set_axes(request: Request, x: str = Form(...), y: str = Form(...)):
    session, created = _session(request)
    with session.lock:
        try:
            session.chart.set_axes(x, y)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    return _done(request, session, created, {"x": session.chart.x_key, "y": session.chart.y_key})

def _table_payload(session: DashboardSession) -> Dict[str, Any]:
    table = session.table
    return {
        "page": table.effective_page,
        "total_pages": table.total_pages,
        "page_size": table.page_size,
        "sort_key": table.sort_key,
        "descending": table.descending,
    }

@app.post("/table/page")
def move_page(request: Request, action: Optional[str] = Form(None), page: Optional[int] = Form(None)):
    session, created = _session(request)
    with session.lock:
        if action == "next":
            session.table.next_page()
        elif action == "prev":
            session.table.prev_page()
        elif action is None and page is not None:
            session.table.go_to(page)
        else:
            raise HTTPException(status_code=400, detail="expected action=next|prev or a page number")
        payload = _table_payload(session)
    return _done(request, session, created, payload)

@app.post("/table/page-size")
def set_page_size(request: Request, size: int = Form(...)):
    session, created = _session(request)
    with session.lock:
        try:
            session.table.set_page_size(size)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        payload = _table_payload(session)
    return _done(request, session, created, payload)

@app.post("/table/sort")
def sort_table(request: Request, key: Optional[str] = Form(None)):
    session, created = _session(request)
    with session.lock:
        try:
            session.table.sort_by(key or None)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        payload = _table_payload(session)
    return _done(request, session, created, payload)

# ---------- records ----------
@app.get("/records")
def get_records(request: Request):
    session, created = _session(request)
    with session.lock:
        payload = {
            "status": session.status,
            "period": session.period,
            "count": len(session.records),
            "records": [q.to_dict() for q in session.records],
        }
    return _with_cookie(JSONResponse(payload), session, created)

@app.get("/records/{record_id}")
def get_record(request: Request, record_id: str):
    session, created = _session(request)
    with session.lock:
        quake = session.find(record_id)
    if quake is None:
        raise HTTPException(status_code=404, detail=f"no record with id {record_id!r}")
    return _with_cookie(JSONResponse(quake.to_dict()), session, created)

# ---------- events ----------
@app.get("/events/tail")
def events_tail(request: Request, n: int = 50, after: int = 0):
    session, created = _session(request)
    return _with_cookie(JSONResponse(bus.tail(n, session=session.id, after=after)), session, created)

@app.get("/events/stream")
def events_stream(request: Request, after: int = 0):
    session, created = _session(request)

    def gen():
        last = after
        while True:
            for ev in bus.tail(100, session=session.id, after=last):
                last = ev["seq"]
                yield "data: " + json.dumps(ev) + "\n\n"
            time.sleep(1)

    resp = StreamingResponse(gen(), media_type="text/event-stream")
    return _with_cookie(resp, session, created)

# ---------- metrics ----------
@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
