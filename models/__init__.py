# Models package
from .contract import ContractRecord, DiscoveredContract, EmployeeContract, CONTRACT_TYPE_FAIRWAGE, CONTRACT_TYPE_UNCLASSIFIED
from .ledger import RawTransaction, RawOperation, INVOKE_HOST_FUNCTION
