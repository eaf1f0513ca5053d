from contextlib import contextmanager
from flask import Blueprint, current_app, jsonify, request
import logging
import threading

import config
from utils.errors import LedgerUnavailableError, ValidationError

logger = logging.getLogger(__name__)

discovery_bp = Blueprint('discovery', __name__, url_prefix='/api')


def get_discovery_service():
    """Discovery service attached to the running app"""
    return current_app.extensions['contract_discovery']


def _request_field(name):
    data = request.get_json(silent=True) or {}
    value = data.get(name)
    return value.strip() if isinstance(value, str) else value


@contextmanager
def request_deadline(seconds=None):
    """Cancel event that fires once the request has run for `seconds`"""
    seconds = config.DISCOVERY_REQUEST_DEADLINE if seconds is None else seconds
    cancel_event = threading.Event()
    timer = None
    if seconds and seconds > 0:
        timer = threading.Timer(seconds, cancel_event.set)
        timer.daemon = True
        timer.start()
    try:
        yield cancel_event
    finally:
        if timer is not None:
            timer.cancel()


@discovery_bp.route('/discover-contracts', methods=['POST'])
def discover_contracts():
    """Discover FairWage contracts deployed by a wallet address"""
    try:
        wallet_address = _request_field('walletAddress')
        register = bool(_request_field('register'))

        with request_deadline() as cancel_event:
            report = get_discovery_service().discover_deployed_by(wallet_address, cancel_event=cancel_event,
                                                                  register=register)

        payload = report.to_dict()
        payload.update({'success': True, 'walletAddress': wallet_address})
        return jsonify(payload)

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except LedgerUnavailableError as e:
        logger.error(f"Contract discovery could not reach the ledger: {e.message}")
        return jsonify({'success': False, 'error': 'Failed to discover contracts', 'details': e.message}), 503
    except Exception as e:
        logger.exception("Contract discovery failed")
        return jsonify({'success': False, 'error': 'Failed to discover contracts', 'details': str(e)}), 500


@discovery_bp.route('/discover-employee-contracts', methods=['POST'])
def discover_employee_contracts():
    """Discover registry contracts an employee is registered in"""
    try:
        employee_address = _request_field('employeeAddress')

        with request_deadline() as cancel_event:
            report = get_discovery_service().discover_membership_of(employee_address, cancel_event=cancel_event)

        payload = report.to_dict()
        payload.update({'success': True, 'employeeAddress': employee_address})
        return jsonify(payload)

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        logger.exception("Employee contract discovery failed")
        return jsonify({'success': False, 'error': 'Failed to discover employee contracts', 'details': str(e)}), 500


@discovery_bp.route('/scan-fairwage-contracts', methods=['POST'])
def scan_fairwage_contracts():
    """Scan a wallet's history for contracts it interacted with"""
    try:
        wallet_address = _request_field('walletAddress')

        with request_deadline() as cancel_event:
            report = get_discovery_service().scan_interactions(wallet_address, cancel_event=cancel_event)

        payload = report.to_dict()
        payload.update({
            'success': True,
            'walletAddress': wallet_address,
            'note': 'These are potential contracts based on interaction patterns. Manual verification recommended.',
        })
        return jsonify(payload)

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except LedgerUnavailableError as e:
        logger.error(f"Contract scan could not reach the ledger: {e.message}")
        return jsonify({'success': False, 'error': 'Failed to scan for contracts', 'details': e.message}), 503
    except Exception as e:
        logger.exception("Contract scan failed")
        return jsonify({'success': False, 'error': 'Failed to scan for contracts', 'details': str(e)}), 500
