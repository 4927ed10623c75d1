from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from issuer.app.api.issue import router as issue_router
from issuer.app.config import IssuerConfig

app = FastAPI(
    title="zenland-escrow-pdf issuer",
    description="Signs escrow metadata into agreement PDFs",
    version="0.1.0",
)

app.include_router(issue_router, prefix="/issue")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    app.state.config = IssuerConfig.from_env()
