"""
Bedrock Proxy - Application FastAPI Factory.
Passerelle d'adaptation de protocole vers AWS Bedrock (SigV4 + SSE normalisé).
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import api_router
from .config.loader import load_config
from .config.settings import init_server_config


def create_app() -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Returns:
        Instance configurée de FastAPI
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        # Startup
        _startup(app)
        yield
        # Shutdown
        _shutdown(app)

    app = FastAPI(
        title="Bedrock Proxy",
        description="Passerelle vers AWS Bedrock avec normalisation du streaming",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Inclusion des routes API
    app.include_router(api_router)

    return app


def _startup(app: FastAPI):
    """Initialisation au démarrage."""
    print("🚀 Démarrage de Bedrock Proxy...")

    config = load_config()
    server_config = init_server_config(config)
    app.state.server_config = server_config

    if server_config.has_aws_credentials:
        print(f"✅ Identifiants AWS serveur configurés (région {server_config.aws_region})")
    else:
        print("✅ Identifiants AWS fournis par les clients (bearer chiffré)")
    print(f"✅ {len(server_config.codes)} code(s) d'accès")
    print(f"✅ Deadline Bedrock: {server_config.deadline_seconds:g}s")


def _shutdown(app: FastAPI):
    """Arrêt de l'application."""
    print("\n👋 Arrêt du serveur...")
    print("✅ Serveur arrêté proprement")


# Crée l'application pour uvicorn
app = create_app()
