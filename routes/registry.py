from flask import Blueprint, current_app, jsonify, request
import logging

from utils.errors import RegistryPersistError, ValidationError

logger = logging.getLogger(__name__)

registry_bp = Blueprint('registry', __name__, url_prefix='/api/contracts')


def get_registry():
    return current_app.extensions['contract_registry']


@registry_bp.route('', methods=['GET'])
def list_contracts():
    """List active contracts in the registry"""
    contracts = [record.to_dict() for record in get_registry().list()]
    return jsonify({'success': True, 'contracts': contracts, 'count': len(contracts)})


@registry_bp.route('', methods=['POST'])
def add_contract():
    """Register a contract, or update the existing entry with the same id"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'error': 'No data provided'}), 400

    try:
        record = get_registry().upsert(data)
        return jsonify({
            'success': True,
            'contract': record.to_dict(),
            'message': f'Contract registry updated: {record.display_name} ({record.id})',
        })

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except RegistryPersistError as e:
        return jsonify(e.to_dict()), 500


@registry_bp.route('/<contract_id>/deactivate', methods=['POST'])
def deactivate_contract(contract_id):
    """Hide a contract from listings and employee discovery"""
    try:
        record = get_registry().deactivate(contract_id)
        return jsonify({'success': True, 'contract': record.to_dict()})

    except ValidationError as e:
        return jsonify(e.to_dict()), 404
    except RegistryPersistError as e:
        return jsonify(e.to_dict()), 500
