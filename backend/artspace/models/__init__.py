from artspace.models.document import Document

__all__ = ["Document"]
