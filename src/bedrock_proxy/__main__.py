"""
Point d'entrée pour `python -m bedrock_proxy`.
"""
import argparse
import logging

import uvicorn


def main():
    """Fonction principale."""
    parser = argparse.ArgumentParser(description="Bedrock Proxy")
    parser.add_argument("--host", default="0.0.0.0", help="Host (défaut: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (défaut: 8000)")
    parser.add_argument("--reload", action="store_true", help="Activer le reload auto")
    parser.add_argument("--log-level", default="info", help="Niveau de log (défaut: info)")

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print(f"🚀 Démarrage de Bedrock Proxy sur {args.host}:{args.port}")

    uvicorn.run(
        "bedrock_proxy.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower()
    )


if __name__ == "__main__":
    main()
