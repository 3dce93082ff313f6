from datetime import datetime
from . import db

class Contract(db.Model):
    """Deployed contract addresses, consulted before the build artifacts"""
    id = db.Column(db.Integer, primary_key=True)
    contract_type = db.Column(db.String(50), nullable=False)  # 'UserRegistry', 'OrderContract', 'SellerOrderContract'
    contract_address = db.Column(db.String(42), nullable=False, unique=True)
    network_id = db.Column(db.String(20))  # Network the address belongs to, if known
    deployed_by = db.Column(db.String(42))  # Wallet address that deployed it
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)  # Inactive rows are ignored by the gateway

    def __repr__(self):
        return f'<Contract {self.contract_type} at {self.contract_address}>'
