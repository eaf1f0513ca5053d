from flask import Flask
import logging

import config

# Import services
from services.contract_discovery import ContractDiscoveryService
from services.ledger_client import LedgerClient
from services.registry_store import RegistryStore

# Import routes
from routes.discovery import discovery_bp
from routes.registry import registry_bp
from routes.health import health_bp


def configure_logging(level=None):
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(registry=None, ledger_client=None, discovery_service=None):
    """Create the Flask app with its registry and discovery service"""
    app = Flask(__name__)

    # Registry is loaded best-effort on start
    if registry is None:
        registry = RegistryStore(config.REGISTRY_PATH)
        registry.load()

    if discovery_service is None:
        discovery_service = ContractDiscoveryService(ledger_client or LedgerClient(), registry)

    app.extensions['contract_registry'] = registry
    app.extensions['contract_discovery'] = discovery_service

    # Register blueprints
    app.register_blueprint(discovery_bp)
    app.register_blueprint(registry_bp)
    app.register_blueprint(health_bp)

    return app


if __name__ == '__main__':
    configure_logging()
    logger = logging.getLogger(__name__)
    logger.info(f"Horizon URL: {config.HORIZON_URL}")
    logger.info(f"RPC URL: {config.RPC_URL}")
    logger.info(f"Probe account: {config.PROBE_ACCOUNT}")

    app = create_app()
    app.run(debug=False, host='0.0.0.0', port=config.FLASK_PORT)
