# Contract Discovery Configuration
# Every value can be overridden from the environment (see .env.example)

import os

# Stellar network
HORIZON_URL = os.environ.get('HORIZON_URL') or 'https://horizon-testnet.stellar.org'
RPC_URL = os.environ.get('RPC_URL') or 'https://soroban-testnet.stellar.org'
NETWORK_PASSPHRASE = os.environ.get('NETWORK_PASSPHRASE') or 'Test SDF Network ; September 2015'
NETWORK_NAME = os.environ.get('NETWORK_NAME') or 'testnet'

# Funded account used only to pay simulated-call fees, never a real employer or employee
PROBE_ACCOUNT = os.environ.get('PROBE_ACCOUNT') or 'GBIFUPL4MOPI5XHPFKYO4SWTKKLSK63GZVMQ5A2FX3TLCS74NJ55QAZD'

# Remote calls
LEDGER_TIMEOUT = float(os.environ.get('LEDGER_TIMEOUT') or 15)
HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT') or 200)
SCAN_LIMIT = int(os.environ.get('SCAN_LIMIT') or 100)
BASE_FEE = int(os.environ.get('BASE_FEE') or 100000)

# Discovery
DEFAULT_TOKEN_SYMBOL = os.environ.get('DEFAULT_TOKEN_SYMBOL') or 'TBU'
MEMBERSHIP_FUNCTION = os.environ.get('MEMBERSHIP_FUNCTION') or 'get_employee_info'
# Contract error code the participant lookup returns for an unknown account (EmployeeNotFound)
EMPLOYEE_NOT_FOUND_CODE = int(os.environ.get('EMPLOYEE_NOT_FOUND_CODE') or 4)
DISCOVERY_MAX_WORKERS = int(os.environ.get('DISCOVERY_MAX_WORKERS') or 5)
# Seconds an HTTP discovery request may run before its remaining items are cancelled (0 disables)
DISCOVERY_REQUEST_DEADLINE = float(os.environ.get('DISCOVERY_REQUEST_DEADLINE') or 120)

# Registry file, relative to the process working directory
REGISTRY_PATH = os.environ.get('REGISTRY_PATH') or 'contracts.json'

# Flask
FLASK_PORT = int(os.environ.get('PORT') or 3001)
LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
