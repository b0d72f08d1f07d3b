from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from schoollib.core.config import configure_logging
from schoollib.core.database import Base, engine
from schoollib.core.errors import LibraryError
from schoollib.api import periodicals, reports, routes

configure_logging()
Base.metadata.create_all(bind=engine)
app = FastAPI(title="School Library Desk")
app.include_router(routes.router)
app.include_router(reports.router)
app.include_router(periodicals.router)

@app.exception_handler(LibraryError)
def library_error_handler(request: Request, exc: LibraryError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, **exc.extra})

@app.get("/health")
def health():
    return {"status": "ok"}
