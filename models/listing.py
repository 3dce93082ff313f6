from datetime import datetime
from . import db

class Listing(db.Model):
    """Classified listing shown in the product catalogue"""
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    image_url = db.Column(db.String(500), nullable=False)
    posted_by = db.Column(db.String(80), nullable=False)  # '@handle' of the poster
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'price': float(self.price),
            'category': self.category,
            'imageUrl': self.image_url,
            'postedBy': self.posted_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Listing {self.id} {self.title}>'
