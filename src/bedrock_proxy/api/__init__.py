"""
Couche HTTP de Bedrock Proxy (routes FastAPI et contrôle d'accès).
"""
