"""
Listing categories for the classifieds catalogue
"""

CATEGORIES = [
    'Electronics',
    'Fashion',
    'Home & Living',
    'Books',
    'Sports',
    'Toys & Games',
    'Vehicles',
    'Miscellaneous',
]

# Shown as shortcuts in the catalogue header
TOP_CATEGORIES = ['Electronics', 'Fashion', 'Miscellaneous']
