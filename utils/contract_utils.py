from flask import current_app
from web3 import Web3
from models import db
from models.contract import Contract

def get_contract_address(contract_type):
    """Get the active registered address for a contract type"""
    contract = Contract.query.filter_by(contract_type=contract_type, is_active=True).order_by(Contract.id.desc()).first()
    return contract.contract_address if contract else None

def store_contract(contract_type, contract_address, network_id=None, deployed_by=None):
    """Register a contract address, retiring older rows of the same type"""
    Contract.query.filter_by(contract_type=contract_type, is_active=True).update({'is_active': False})
    contract = Contract.query.filter_by(contract_address=contract_address).first()
    if contract:
        contract.contract_type = contract_type
        contract.is_active = True
    else:
        contract = Contract(
            contract_type=contract_type,
            contract_address=contract_address,
            network_id=network_id,
            deployed_by=deployed_by
        )
        db.session.add(contract)
    db.session.commit()
    get_gateway().forget_contract(contract_type)
    return contract

def to_jsonable(value):
    """Convert decoded contract results (tuples, bytes) into JSON-friendly values"""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    return value

def get_gateway():
    """The contract gateway configured on the current app"""
    return current_app.extensions['contract_gateway']
