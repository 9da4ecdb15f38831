import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env before config is read
load_dotenv()

from opportunities import config
from opportunities.utils.logger import setup_debug_logging
from opportunities.api import auth, verification, worker_dashboard, employer_dashboard
from opportunities.db.backend import SupabaseBackend
from opportunities.services.auth_context import AuthContext
from opportunities.services.verification_wizard import WizardRegistry

setup_debug_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Connecting Opportunities API",
    description="Worker and employer accounts, worker identity verification and dashboards",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(verification.router)
app.include_router(worker_dashboard.router)
app.include_router(employer_dashboard.router)


@app.get("/")
async def root():
    """API index"""
    return JSONResponse(
        status_code=200,
        content={
            "status": "running",
            "message": "Connecting Opportunities API",
            "endpoints": {
                "worker_signup": "POST /worker/signup",
                "worker_login": "POST /worker/login",
                "employer_signup": "POST /employer/signup",
                "employer_login": "POST /employer/login",
                "logout": "POST /auth/logout",
                "session": "GET /auth/session",
                "refresh_profile": "POST /auth/refresh",
                "verification": "GET /verification/{user_id}",
                "upload_id_document": "POST /verification/{user_id}/document",
                "selfie_camera": "POST /verification/{user_id}/camera/{start|frame|capture|cancel}",
                "verify": "POST /verification/{user_id}/verify",
                "restart_verification": "POST /verification/{user_id}/restart",
                "worker_dashboard": "GET /worker/dashboard/{overview|verify|jobs|earnings|profile}",
                "worker_profile_update": "PUT /worker/profile",
                "employer_dashboard": "GET /employer/dashboard/{search|jobs|bookings|payments|profile}",
                "post_job": "POST /employer/jobs",
                "employer_profile_update": "PUT /employer/profile",
                "health": "GET /health",
                "docs": "GET /docs"
            }
        }
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return JSONResponse(
        status_code=200,
        content={"status": "healthy", "backend_configured": config.is_backend_configured()}
    )


@app.on_event("startup")
async def startup_event():
    """Create the backend gateway and restore the session"""
    logger.info("=" * 80)
    logger.info("Connecting Opportunities API starting")
    logger.info("=" * 80)

    if config.is_backend_configured():
        logger.info(f"SUPABASE_URL: {config.SUPABASE_URL}")
    else:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set (login and signup will report missing credentials)")

    app.state.backend = SupabaseBackend()
    app.state.wizards = WizardRegistry()
    app.state.auth_context = AuthContext(app.state.backend)
    app.state.auth_context.init()

    logger.info("API ready for requests")


@app.on_event("shutdown")
async def shutdown_event():
    """Release cameras and stop following session changes"""
    app.state.wizards.close_all()
    app.state.auth_context.teardown()
    logger.info("Connecting Opportunities API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info")
    )
