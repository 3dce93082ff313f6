from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted
import json
import logging
from pathlib import Path
import requests

from config import settings
from utils.errors import GatewayError, GatewayUnavailableError

logger = logging.getLogger(__name__)


class Web3Service:
    """Contract gateway backed by a Web3 HTTP provider.

    Routes only see call() and send(); which contract answers a method,
    where it is deployed and how the transaction is submitted stay here.
    """

    def __init__(self, rpc_url=None, build_dir=None, timeout=None, default_gas=None, method_contracts=None):
        self.rpc_url = rpc_url or settings.RPC_URL
        self.timeout = timeout or settings.GATEWAY_TIMEOUT
        self.default_gas = default_gas or settings.DEFAULT_GAS
        self.method_contracts = dict(method_contracts or settings.METHOD_CONTRACTS)

        logger.info(f"🔗 Using blockchain node at: {self.rpc_url} (timeout {self.timeout}s)")
        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={'timeout': self.timeout}))

        # Load Truffle build artifacts
        self.build_dir = Path(build_dir or settings.BUILD_DIR)
        self.artifacts = {}
        self._contracts = {}
        self._load_artifacts()

    def _load_artifacts(self):
        """Load every <ContractName>.json artifact from the build directory"""
        if not self.build_dir.exists():
            logger.warning(f"Build directory not found: {self.build_dir}")
            return

        for artifact_file in sorted(self.build_dir.glob('*.json')):
            try:
                with open(artifact_file, 'r') as f:
                    artifact = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading artifact {artifact_file}: {e}")
                continue
            if 'abi' not in artifact:
                logger.warning(f"Skipping {artifact_file.name}: no ABI")
                continue
            self.artifacts[artifact_file.stem] = artifact
            logger.info(f"✅ Loaded {artifact_file.stem} ABI")

    def contract_for(self, method):
        """Name of the contract that answers a gateway method"""
        try:
            return self.method_contracts[method]
        except KeyError:
            raise GatewayError(f"No contract is configured for method {method}")

    def _network_id(self):
        return str(self.w3.net.version)

    def _resolve_address(self, contract_name):
        """Registered address first, then the artifact's deployment for this network"""
        from flask import has_app_context
        if has_app_context():
            from utils.contract_utils import get_contract_address
            address = get_contract_address(contract_name)
            if address:
                return address

        networks = self.artifacts[contract_name].get('networks') or {}
        deployment = networks.get(self._network_id())
        if not deployment or not deployment.get('address'):
            raise GatewayError(f"{contract_name} is not deployed to the detected network")
        return deployment['address']

    def get_contract(self, contract_name):
        """Contract instance by name, cached after the first lookup"""
        if contract_name in self._contracts:
            return self._contracts[contract_name]
        if contract_name not in self.artifacts:
            raise GatewayError(f"ABI not found for contract: {contract_name}")

        address = self._resolve_address(contract_name)
        contract = self.w3.eth.contract(
            address=self.w3.to_checksum_address(address),
            abi=self.artifacts[contract_name]['abi']
        )
        self._contracts[contract_name] = contract
        logger.info(f"📄 {contract_name} initialized at {address}")
        return contract

    def forget_contract(self, contract_name):
        """Drop a cached instance so the next call resolves its address again"""
        self._contracts.pop(contract_name, None)

    def _function(self, method, contract_name):
        contract = self.get_contract(contract_name or self.contract_for(method))
        try:
            return getattr(contract.functions, method)
        except AttributeError:
            raise GatewayError(f"Contract has no method {method}")

    def call(self, method, *args, contract=None):
        """Read-only contract call; returns the decoded result"""
        try:
            return self._function(method, contract)(*args).call()
        except GatewayError:
            raise
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError, TimeExhausted) as e:
            logger.error(f"❌ Gateway unavailable calling {method}: {e}")
            raise GatewayUnavailableError()
        except ContractLogicError as e:
            logger.error(f"❌ {method} reverted: {e}")
            raise GatewayError(f"{method} reverted: {getattr(e, 'message', None) or e}")
        except Exception as e:
            logger.exception(f"❌ Error calling {method}")
            raise GatewayError(f"{method} failed: {e}")

    def send(self, method, *args, acting_as, gas=None, contract=None):
        """State-changing contract call sent from acting_as; returns the receipt"""
        if not acting_as:
            raise GatewayError(f"{method} needs an account to send from")
        try:
            sender = self.w3.to_checksum_address(acting_as)
            tx_hash = self._function(method, contract)(*args).transact({
                'from': sender,
                'gas': gas or self.default_gas
            })
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except GatewayError:
            raise
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError, TimeExhausted) as e:
            logger.error(f"❌ Gateway unavailable sending {method}: {e}")
            raise GatewayUnavailableError()
        except ContractLogicError as e:
            logger.error(f"❌ {method} reverted: {e}")
            raise GatewayError(f"{method} reverted: {getattr(e, 'message', None) or e}")
        except Exception as e:
            logger.exception(f"❌ Error sending {method}")
            raise GatewayError(f"{method} failed: {e}")

        if receipt.get('status') != 1:
            raise GatewayError(f"{method} transaction failed with status {receipt.get('status')}")

        logger.info(f"✅ {method} mined in block {receipt.get('blockNumber')} from {sender}")
        return receipt

    def is_address(self, address):
        """Check if a string is a valid Ethereum address"""
        return self.w3.is_address(address)
