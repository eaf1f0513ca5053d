from datetime import datetime, timezone

from utils.address_utils import is_contract_id, short_id
from utils.errors import ValidationError

# Contract types recognised by discovery
CONTRACT_TYPE_FAIRWAGE = 'fairwage'
CONTRACT_TYPE_UNCLASSIFIED = 'unclassified'


class ContractRecord:
    """A named contract known to the registry"""

    FIELDS = ('id', 'display_name', 'token_symbol', 'token_contract_id', 'active')

    def __init__(self, id, display_name=None, token_symbol=None, token_contract_id=None, active=None):
        self.id = id
        self.display_name = display_name
        self.token_symbol = token_symbol
        self.token_contract_id = token_contract_id
        # None means "not specified"; the registry defaults new records to active
        self.active = active

    @classmethod
    def from_dict(cls, data):
        """Build a record from the stored JSON shape or a registration request"""
        if not isinstance(data, dict):
            raise ValidationError('Contract data must be an object')
        active = data.get('active')
        if active is not None and not isinstance(active, bool):
            raise ValidationError('active must be a boolean')
        return cls(
            id=data.get('id') or data.get('contractId'),
            display_name=data.get('name') or data.get('companyName') or data.get('displayName'),
            token_symbol=data.get('tokenSymbol'),
            token_contract_id=data.get('tokenContract') or data.get('tokenContractId'),
            active=active,
        )

    def validate(self):
        """Check required fields before the record enters the registry"""
        if not self.id or not self.display_name:
            raise ValidationError('Contract must have id and name')
        if not is_contract_id(self.id):
            raise ValidationError(f'Invalid contract id: {self.id}')
        if self.token_contract_id and not is_contract_id(self.token_contract_id):
            raise ValidationError(f'Invalid token contract id: {self.token_contract_id}')

    def merged_with(self, incoming):
        """Shallow merge: non-None incoming fields win, the rest are preserved"""
        merged = self.copy()
        for field in self.FIELDS:
            value = getattr(incoming, field)
            if value is not None:
                setattr(merged, field, value)
        return merged

    def copy(self):
        return ContractRecord(**{field: getattr(self, field) for field in self.FIELDS})

    @property
    def is_active(self):
        return self.active is not False

    def to_dict(self):
        """Durable JSON shape"""
        return {
            'id': self.id,
            'name': self.display_name,
            'tokenSymbol': self.token_symbol,
            'tokenContract': self.token_contract_id,
            'active': self.is_active,
        }

    def __eq__(self, other):
        if not isinstance(other, ContractRecord):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.FIELDS)

    def __repr__(self):
        return f'<ContractRecord {self.display_name} at {self.id}>'


class DiscoveredContract:
    """A contract candidate recovered from transaction history (not persisted)"""

    def __init__(self, contract_id, company_name, token_symbol, deployment_date, transaction_hash,
                 deployer_address, contract_type, token_contract_id=None, strategy=None):
        self.contract_id = contract_id
        self.token_contract_id = token_contract_id
        self.company_name = company_name or f'Contract {short_id(contract_id)}'
        self.token_symbol = token_symbol
        self.deployment_date = deployment_date
        self.transaction_hash = transaction_hash
        self.deployer_address = deployer_address
        self.contract_type = contract_type
        self.strategy = strategy

    def to_record(self):
        """Promote to a registry record"""
        return ContractRecord(
            id=self.contract_id,
            display_name=self.company_name,
            token_symbol=self.token_symbol,
            token_contract_id=self.token_contract_id,
        )

    def to_dict(self):
        return {
            'contractId': self.contract_id,
            'tokenContractId': self.token_contract_id,
            'companyName': self.company_name,
            'tokenSymbol': self.token_symbol,
            'deploymentDate': self.deployment_date,
            'transactionHash': self.transaction_hash,
            'deployerAddress': self.deployer_address,
            'contractType': self.contract_type,
        }

    def __repr__(self):
        return f'<DiscoveredContract {self.company_name} at {self.contract_id} tx {self.transaction_hash}>'


class EmployeeContract:
    """A registry contract the employee is confirmed to belong to"""

    def __init__(self, record, network, last_checked=None):
        self.record = record
        self.network = network
        self.last_checked = last_checked or datetime.now(timezone.utc).isoformat()

    def to_dict(self):
        return {
            'contractId': self.record.id,
            'companyName': self.record.display_name,
            'tokenSymbol': self.record.token_symbol,
            'tokenContract': self.record.token_contract_id,
            'active': self.record.is_active,
            'verified': True,
            'lastChecked': self.last_checked,
            'network': self.network,
        }

    def __repr__(self):
        return f'<EmployeeContract {self.record.display_name} at {self.record.id}>'
