from fastapi import FastAPI, HTTPException

from nest_worker.api.routes import jobs
from nest_worker.core.exceptions import global_exception_handler, http_exception_handler
from nest_worker.core.lifespan import lifespan

app = FastAPI(title="Nest job worker", lifespan=lifespan)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(jobs.router, prefix="/v1/jobs", tags=["jobs"])
