import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import engine, ensure_user_schema
from backend.models import user
from backend.routes import (
    admin_routes,
    auth_routes,
    network_routes,
    profile_routes,
    role_transition_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)

app = FastAPI(title='CollegeConnect API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        user.Base.metadata.create_all(bind=engine)
        ensure_user_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'CollegeConnect API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(profile_routes.router, prefix='/api/profile')
app.include_router(admin_routes.router, prefix='/api/admin')
app.include_router(role_transition_routes.router, prefix='/api/role-transition')
app.include_router(network_routes.router, prefix='/api/network')
