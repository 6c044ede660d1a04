from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .document import Document
from .product import Product
from .brand import Brand
