# Models package
from flask_sqlalchemy import SQLAlchemy

# Create a single database instance for all models
db = SQLAlchemy()

# Import all models
from .session import Role, Session
from .cart import CartItem
from .contract import Contract
from .listing import Listing
