import uuid

from models import db


def _new_document_id():
    return uuid.uuid4().hex


# Stored document of any collection; the payload lives in `data`
class Document(db.Model):
    __tablename__ = 'documents'
    id = db.Column(db.String(32), primary_key=True, default=_new_document_id)
    collection = db.Column(db.String(64), nullable=False, index=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())

    def __repr__(self):
        return f'<Document {self.collection}/{self.id}>'

    def to_snapshot_item(self):
        item = dict(self.data or {})
        item['id'] = self.id
        return item
