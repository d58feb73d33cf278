from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ryoiki.routers import analysis, layout

app = FastAPI(
    title="Ryoiki Server",
    description="Complexity metrics tree, project summary and treemap layout for a codebase.",
    version="1.0.0"
)

# The treemap client is served from another port during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis.router)
app.include_router(layout.router)


@app.get("/api-status")
async def status():
    return {"message": "Ryoiki server is running. Visit /docs for API documentation."}


# Built web client, relative to the project root the CLI chdirs into.
# Mounted last so "/" does not shadow the API routes.
client_dist = Path("apps") / "web" / "dist"
if client_dist.is_dir():
    app.mount("/", StaticFiles(directory=str(client_dist), html=True), name="static")
