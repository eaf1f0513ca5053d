from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

import config

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    """Liveness check"""
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'network': config.NETWORK_NAME,
        'registrySize': len(current_app.extensions['contract_registry'].list()),
    })
