from app import create_app
from models import db
from models.brand import Brand
from services import document_store

brands = [
    'Acme',
    'Nestlé',
    'Tio João',
    'Camil',
]

app = create_app()
with app.app_context():
    db.create_all()
    collection = document_store.collection('brands')
    existing = {Brand.from_snapshot(item).name for item in collection.get()}
    for name in brands:
        if name not in existing:
            collection.create({'name': name})
    print('Default brands added.')
