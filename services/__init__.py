from .store import DocumentStore

document_store = DocumentStore()
